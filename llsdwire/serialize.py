"""Format-selecting entry points.

The ``to_*``/``from_*`` pairs follow the sentinel convention: formatting
returns the number of bytes written, parsing returns ``(value, node_count)``
or ``(Value(), PARSE_FAILURE)``. The ``format_*``/``parse_*`` helpers work on
bytes and raise ``LLSDParseError`` instead.

The sentinel only covers malformed input. A ``max_bytes`` below
``SIZE_UNLIMITED`` is a caller error and raises pydantic's ``ValidationError``
(a ``ValueError``) from every parsing entry point.
"""

import io
from typing import Any, BinaryIO

from .codecs import get_codec
from .constants import BINARY_HEADER, SIZE_UNLIMITED, Format
from .options import FormatterOptions, ParserOptions
from .reader import Source
from .value import Value


def _as_value(thing: Any) -> Value:
    return thing if isinstance(thing, Value) else Value.from_python(thing)


# ----------------------------------------------------------------------------
# Registry dispatch
# ----------------------------------------------------------------------------


def format_value(value: Any, fmt: Format, sink: BinaryIO, options: FormatterOptions | None = None) -> int:
    """Write ``value`` to ``sink`` in format ``fmt``.

    Args:
        value: Value tree or native Python object
        fmt: Target format
        sink: Writable binary stream
        options: Formatter options

    Returns:
        Number of bytes written
    """
    formatter = get_codec(fmt, options).formatter()
    formatter.format(_as_value(value), sink)
    return formatter.bytes_written


def parse_value(source: Source, fmt: Format, max_bytes: int = SIZE_UNLIMITED) -> tuple[Value, int]:
    """Parse one value in format ``fmt`` from ``source``.

    Returns:
        (value, node count), or (Value(), PARSE_FAILURE) on malformed input

    Raises:
        pydantic.ValidationError: If ``max_bytes`` is below SIZE_UNLIMITED
    """
    parser = get_codec(fmt, parser_options=ParserOptions(max_bytes=max_bytes)).parser()
    return parser.parse(source)


# ----------------------------------------------------------------------------
# Stream API
# ----------------------------------------------------------------------------


def to_binary(value: Any, sink: BinaryIO, options: FormatterOptions | None = None) -> int:
    return format_value(value, Format.BINARY, sink, options)


def from_binary(source: Source, max_bytes: int = SIZE_UNLIMITED) -> tuple[Value, int]:
    return parse_value(source, Format.BINARY, max_bytes)


def to_notation(value: Any, sink: BinaryIO, options: FormatterOptions | None = None) -> int:
    return format_value(value, Format.NOTATION, sink, options)


def from_notation(source: Source, max_bytes: int = SIZE_UNLIMITED) -> tuple[Value, int]:
    return parse_value(source, Format.NOTATION, max_bytes)


def to_xml(value: Any, sink: BinaryIO, options: FormatterOptions | None = None) -> int:
    return format_value(value, Format.XML, sink, options)


def from_xml(source: Source, max_bytes: int = SIZE_UNLIMITED) -> tuple[Value, int]:
    return parse_value(source, Format.XML, max_bytes)


# ----------------------------------------------------------------------------
# Bytes API
# ----------------------------------------------------------------------------


def _format_bytes(value: Any, fmt: Format, options: FormatterOptions | None) -> bytes:
    sink = io.BytesIO()
    format_value(value, fmt, sink, options)
    return sink.getvalue()


def format_binary(value: Any, options: FormatterOptions | None = None) -> bytes:
    return _format_bytes(value, Format.BINARY, options)


def format_notation(value: Any, options: FormatterOptions | None = None) -> bytes:
    return _format_bytes(value, Format.NOTATION, options)


def format_xml(value: Any, options: FormatterOptions | None = None) -> bytes:
    return _format_bytes(value, Format.XML, options)


def format_pretty_xml(value: Any, options: FormatterOptions | None = None) -> bytes:
    """Format indented XML; other fields of ``options`` are kept."""
    options = (options or FormatterOptions()).model_copy(update={"pretty": True})
    return _format_bytes(value, Format.XML, options)


def _parse_strict(data: Source, fmt: Format, max_bytes: int) -> Value:
    parser = get_codec(fmt, parser_options=ParserOptions(max_bytes=max_bytes)).parser()
    value, _ = parser.parse_strict(data)
    return value


def parse_binary(data: Source, max_bytes: int = SIZE_UNLIMITED) -> Value:
    """Parse binary LLSD.

    Raises:
        LLSDParseError: If the input is malformed
    """
    return _parse_strict(data, Format.BINARY, max_bytes)


def parse_notation(data: Source, max_bytes: int = SIZE_UNLIMITED) -> Value:
    """Parse notation LLSD.

    Raises:
        LLSDParseError: If the input is malformed
    """
    return _parse_strict(data, Format.NOTATION, max_bytes)


def parse_xml(data: Source, max_bytes: int = SIZE_UNLIMITED) -> Value:
    """Parse XML LLSD.

    Raises:
        LLSDParseError: If the input is malformed
    """
    return _parse_strict(data, Format.XML, max_bytes)


def detect_format(data: bytes) -> Format:
    """Guess the format of a complete document."""
    head = data.lstrip()
    if head.startswith(BINARY_HEADER):
        return Format.BINARY
    if head.startswith(b"<"):
        return Format.XML
    return Format.NOTATION


def parse_any(data: bytes, max_bytes: int = SIZE_UNLIMITED) -> Value:
    """Parse a document in whichever format it appears to be.

    Raises:
        LLSDParseError: If the input is malformed
    """
    fmt = detect_format(data)
    if fmt is Format.BINARY:
        data = data.lstrip()[len(BINARY_HEADER) :]
    return _parse_strict(data, fmt, max_bytes)
