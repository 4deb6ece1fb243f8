"""Binary LLSD codec: one tag byte per node, big-endian length framing."""

import struct
import uuid
from collections.abc import Callable
from typing import BinaryIO

from ..constants import (
    BINARY_HEADER,
    BINARY_MIME_TYPE,
    TAG_ARRAY_BEGIN,
    TAG_ARRAY_END,
    TAG_BINARY,
    TAG_DATE,
    TAG_FALSE,
    TAG_INTEGER,
    TAG_MAP_BEGIN,
    TAG_MAP_END,
    TAG_MAP_KEY,
    TAG_REAL,
    TAG_STRING,
    TAG_TRUE,
    TAG_UNDEF,
    TAG_URI,
    TAG_UUID,
    Format,
    Kind,
)
from ..errors import StructuralError
from ..options import ParserOptions
from ..reader import BudgetedReader
from ..value import Value, date_from_seconds, date_to_seconds
from .base import Codec, Formatter, Parser
from .notation_codec import decode_text, read_delimited

# ----------------------------------------------------------------------------
# Struct helpers
# ----------------------------------------------------------------------------

_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_F64 = struct.Struct(">d")


def _pack_len(n: int) -> bytes:
    return _U32.pack(n)


def _read_len(reader: BudgetedReader, what: str) -> int:
    offset = reader.consumed
    (n,) = _I32.unpack(reader.read_exact(4))
    if n < 0:
        raise StructuralError(f"negative {what} {n}", offset)
    return n


# ----------------------------------------------------------------------------
# Formatter
# ----------------------------------------------------------------------------


class BinaryFormatter(Formatter):
    """Writes application/llsd+binary."""

    def do_format(self, value: Value, sink: BinaryIO) -> int:
        if self.options.binary_header:
            sink.write(BINARY_HEADER)
        return self._write(value, sink)

    def _write(self, value: Value, sink: BinaryIO) -> int:
        kind = value.kind
        data = value.data

        if kind is Kind.MAP:
            sink.write(TAG_MAP_BEGIN + _pack_len(len(data)))
            count = 1
            for key, item in value.items():
                encoded = key.encode("utf-8")
                sink.write(TAG_MAP_KEY + _pack_len(len(encoded)) + encoded)
                count += self._write(item, sink)
            sink.write(TAG_MAP_END)
            return count

        if kind is Kind.ARRAY:
            sink.write(TAG_ARRAY_BEGIN + _pack_len(len(data)))
            count = 1
            for item in data:
                count += self._write(item, sink)
            sink.write(TAG_ARRAY_END)
            return count

        if kind is Kind.UNDEFINED:
            sink.write(TAG_UNDEF)
        elif kind is Kind.BOOLEAN:
            sink.write(TAG_TRUE if data else TAG_FALSE)
        elif kind is Kind.INTEGER:
            sink.write(TAG_INTEGER + _I32.pack(data))
        elif kind is Kind.REAL:
            sink.write(TAG_REAL + _F64.pack(data))
        elif kind is Kind.UUID:
            sink.write(TAG_UUID + data.bytes)
        elif kind is Kind.DATE:
            sink.write(TAG_DATE + _F64.pack(date_to_seconds(data)))
        elif kind in (Kind.STRING, Kind.URI):
            encoded = data.encode("utf-8")
            tag = TAG_STRING if kind is Kind.STRING else TAG_URI
            sink.write(tag + _pack_len(len(encoded)) + encoded)
        elif kind is Kind.BINARY:
            sink.write(TAG_BINARY + _pack_len(len(data)) + data)
        return 1


# ----------------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------------


class BinaryParser(Parser):
    """Reads application/llsd+binary.

    Besides the canonical ``s``/``k`` framing, quote-delimited escaped
    strings are accepted both as values and as map keys.
    """

    def __init__(self, options: ParserOptions | None = None) -> None:
        super().__init__(options)
        self._dispatch: dict[bytes, Callable[[BudgetedReader], tuple[Value, int]]] = {
            TAG_MAP_BEGIN: self._parse_map,
            TAG_ARRAY_BEGIN: self._parse_array,
            TAG_UNDEF: lambda r: (Value(), 1),
            TAG_TRUE: lambda r: (Value.boolean(True), 1),
            TAG_FALSE: lambda r: (Value.boolean(False), 1),
            TAG_INTEGER: lambda r: (Value.integer(_I32.unpack(r.read_exact(4))[0]), 1),
            TAG_REAL: lambda r: (Value.real(_F64.unpack(r.read_exact(8))[0]), 1),
            TAG_UUID: lambda r: (Value.uuid(uuid.UUID(bytes=r.read_exact(16))), 1),
            TAG_DATE: self._parse_date,
            TAG_STRING: lambda r: (Value.string(self._parse_text(r)), 1),
            TAG_URI: lambda r: (Value.uri(self._parse_text(r)), 1),
            TAG_BINARY: lambda r: (Value.binary(self._parse_raw(r)), 1),
            b"'": lambda r: (Value.string(decode_text(read_delimited(r, b"'"), r)), 1),
            b'"': lambda r: (Value.string(decode_text(read_delimited(r, b'"'), r)), 1),
        }

    def do_parse(self, reader: BudgetedReader) -> tuple[Value, int]:
        return self._parse_node(reader)

    def _parse_node(self, reader: BudgetedReader) -> tuple[Value, int]:
        offset = reader.consumed
        tag = reader.getc()
        handler = self._dispatch.get(tag)
        if handler is None:
            raise StructuralError(f"invalid binary tag {tag!r}", offset)
        return handler(reader)

    def _parse_map(self, reader: BudgetedReader) -> tuple[Value, int]:
        self.enter_container(reader.consumed)
        size = _read_len(reader, "map size")
        result = Value.map()
        count = 1
        for _ in range(size):
            offset = reader.consumed
            tag = reader.getc()
            if tag == TAG_MAP_KEY:
                key = self._parse_text(reader)
            elif tag in (b"'", b'"'):
                key = decode_text(read_delimited(reader, tag), reader)
            else:
                raise StructuralError(f"invalid map key tag {tag!r}", offset)
            item, n = self._parse_node(reader)
            result.data[key] = item
            count += n
        offset = reader.consumed
        if reader.getc() != TAG_MAP_END:
            raise StructuralError("map size does not match entries before '}'", offset)
        self.leave_container()
        return result, count

    def _parse_array(self, reader: BudgetedReader) -> tuple[Value, int]:
        self.enter_container(reader.consumed)
        size = _read_len(reader, "array size")
        result = Value.array()
        count = 1
        for _ in range(size):
            item, n = self._parse_node(reader)
            result.data.append(item)
            count += n
        offset = reader.consumed
        if reader.getc() != TAG_ARRAY_END:
            raise StructuralError("array size does not match elements before ']'", offset)
        self.leave_container()
        return result, count

    def _parse_raw(self, reader: BudgetedReader) -> bytes:
        size = _read_len(reader, "length")
        return reader.read_exact(size)

    def _parse_text(self, reader: BudgetedReader) -> str:
        return decode_text(self._parse_raw(reader), reader)

    def _parse_date(self, reader: BudgetedReader) -> tuple[Value, int]:
        offset = reader.consumed
        (seconds,) = _F64.unpack(reader.read_exact(8))
        try:
            return Value.date(date_from_seconds(seconds)), 1
        except (OverflowError, ValueError) as exc:
            raise StructuralError(f"date out of range: {exc}", offset) from exc


class BinaryCodec(Codec):
    """Binary LLSD codec."""

    format_id = Format.BINARY
    mime_type = BINARY_MIME_TYPE
    formatter_class = BinaryFormatter
    parser_class = BinaryParser
