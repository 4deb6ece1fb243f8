"""Base formatter, parser and codec interfaces."""

import io
import logging
from abc import ABC, abstractmethod
from typing import Any, BinaryIO

from ..constants import PARSE_FAILURE, Format
from ..errors import LLSDParseError, StructuralError
from ..options import FormatterOptions, ParserOptions
from ..reader import BudgetedReader, Source
from ..value import Value


class _CountingSink:
    """Pass-through writer that counts bytes."""

    def __init__(self, sink: BinaryIO) -> None:
        self._sink = sink
        self.count = 0

    def write(self, data: bytes) -> int:
        self._sink.write(data)
        self.count += len(data)
        return len(data)


class Formatter(ABC):
    """Walks a Value tree and writes one wire encoding to a sink."""

    def __init__(self, options: FormatterOptions | None = None) -> None:
        self.options = options if options is not None else FormatterOptions()
        self.bytes_written = 0

    @property
    def bool_alpha(self) -> bool:
        return self.options.bool_alpha

    @bool_alpha.setter
    def bool_alpha(self, flag: bool) -> None:
        self.options = self.options.model_copy(update={"bool_alpha": flag})

    @property
    def real_format(self) -> str | None:
        return self.options.real_format

    @real_format.setter
    def real_format(self, fmt: str | None) -> None:
        # revalidate through the model
        self.options = FormatterOptions(**{**self.options.model_dump(), "real_format": fmt})

    def format_real(self, x: float) -> str:
        if self.options.real_format:
            return self.options.real_format % x
        return repr(x)

    def format(self, value: Value, sink: BinaryIO) -> int:
        """Write ``value`` to ``sink``.

        The byte count of the call is left in ``bytes_written``.

        Returns:
            Number of nodes written
        """
        out = _CountingSink(sink)
        count = self.do_format(value, out)
        self.bytes_written = out.count
        return count

    @abstractmethod
    def do_format(self, value: Value, sink: BinaryIO) -> int:
        """Write ``value`` and return its node count."""
        pass

    def format_bytes(self, value: Value) -> bytes:
        """Format ``value`` into a new bytes object."""
        sink = io.BytesIO()
        self.format(value, sink)
        return sink.getvalue()


class Parser(ABC):
    """Rebuilds a Value tree from one wire encoding.

    ``bytes_consumed`` holds the byte count of the last call until ``reset()``.
    """

    def __init__(self, options: ParserOptions | None = None) -> None:
        self.options = options if options is not None else ParserOptions()
        self.bytes_consumed = 0
        self._depth = 0

    def reset(self) -> None:
        """Clear per-call counters before reusing the parser on new input."""
        self.bytes_consumed = 0
        self._depth = 0

    def parse(self, source: Source, max_bytes: int | None = None) -> tuple[Value, int]:
        """Parse one value, reporting failure with the PARSE_FAILURE sentinel.

        Args:
            source: Bytes-like object or readable binary stream
            max_bytes: Byte budget; defaults to ``options.max_bytes``

        Returns:
            (value, node count), or (Value(), PARSE_FAILURE) on malformed input
        """
        try:
            return self.parse_strict(source, max_bytes)
        except LLSDParseError as exc:
            logging.debug("%s failed after %d bytes: %s", type(self).__name__, self.bytes_consumed, exc)
            return Value(), PARSE_FAILURE

    def parse_strict(self, source: Source, max_bytes: int | None = None) -> tuple[Value, int]:
        """Like ``parse()`` but raises LLSDParseError on malformed input."""
        budget = self.options.max_bytes if max_bytes is None else max_bytes
        reader = BudgetedReader(source, budget)
        self._depth = 0
        try:
            return self.do_parse(reader)
        finally:
            reader.finish()
            self.bytes_consumed = reader.consumed

    @abstractmethod
    def do_parse(self, reader: BudgetedReader) -> tuple[Value, int]:
        """Read one value from ``reader`` and return it with its node count."""
        pass

    def enter_container(self, offset: int) -> None:
        self._depth += 1
        if self._depth > self.options.max_depth:
            raise StructuralError(f"nesting deeper than {self.options.max_depth}", offset)

    def leave_container(self) -> None:
        self._depth -= 1


class Codec:
    """A formatter/parser pair for one wire format."""

    format_id: Format
    mime_type: str
    formatter_class: type[Formatter]
    parser_class: type[Parser]

    def __init__(
        self,
        options: FormatterOptions | None = None,
        parser_options: ParserOptions | None = None,
    ) -> None:
        self.options = options
        self.parser_options = parser_options

    def formatter(self) -> Formatter:
        return self.formatter_class(self.options)

    def parser(self) -> Parser:
        return self.parser_class(self.parser_options)

    def encode(self, data: Any) -> bytes:
        """Encode a Value (or native Python object) to bytes."""
        value = data if isinstance(data, Value) else Value.from_python(data)
        return self.formatter().format_bytes(value)

    def decode(self, data: Source) -> Value:
        """Decode bytes to a Value.

        Raises:
            LLSDParseError: If the input is malformed
        """
        value, _ = self.parser().parse_strict(data)
        return value
