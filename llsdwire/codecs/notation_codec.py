"""Notation LLSD codec: compact ASCII text with per-kind literal prefixes.

    map:     {'key':value,'key':value}
    array:   [value,value]
    undef:   !
    boolean: true | false | 1 | 0 | T | F | t | f | TRUE | FALSE
    integer: i####
    real:    r####
    uuid:    u########-####-####-####-############
    string:  'g\\'day' | "say \\"hi\\"" | s(size)"raw data"
    uri:     l"escaped"
    date:    d"YYYY-MM-DDTHH:MM:SS.FFZ"
    binary:  b64"base64" | b16"hex" | b(size)"raw data"
"""

import base64
import binascii
import re
import uuid
from collections.abc import Callable
from typing import BinaryIO

from ..constants import NOTATION_MIME_TYPE, Format, Kind
from ..errors import LengthMismatchError, StructuralError
from ..options import ParserOptions
from ..reader import BudgetedReader
from ..value import Value, format_date, parse_date
from .base import Codec, Formatter, Parser

_INT_RE = re.compile(rb"[-+]?\d+")
_REAL_RE = re.compile(rb"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?|inf|nan)")
_UUID_RE = re.compile(rb"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
_HEX2_RE = re.compile(rb"[0-9a-fA-F]{2}")

_TRUE_WORDS = (b"true", b"TRUE", b"t", b"T")
_FALSE_WORDS = (b"false", b"FALSE", b"f", b"F")

# ----------------------------------------------------------------------------
# Quoted text
# ----------------------------------------------------------------------------

_UNESCAPES = {
    b"a": b"\a",
    b"b": b"\b",
    b"f": b"\f",
    b"n": b"\n",
    b"r": b"\r",
    b"t": b"\t",
    b"v": b"\v",
}

_ESCAPES = {
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


def escape_text(text: str, quote: str) -> bytes:
    """Escape ``text`` for use between ``quote`` characters.

    Backslash, the quote and the named control escapes get backslash forms;
    any other ASCII control character becomes ``\\xHH``.
    """
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch == quote:
            out.append("\\" + quote)
        elif ch < " " or ch == "\x7f":
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return "".join(out).encode("utf-8")


def read_delimited(reader: BudgetedReader, delim: bytes) -> bytes:
    """Read escaped text up to an unescaped ``delim``.

    The opening delimiter must already be consumed; the closing one is
    consumed but not returned.

    Raises:
        TruncatedInputError: If input ends before the closing delimiter
        StructuralError: On a malformed ``\\x`` escape
    """
    buf = bytearray()
    while True:
        c = reader.getc()
        if c == delim:
            return bytes(buf)
        if c != b"\\":
            buf += c
            continue
        c = reader.getc()
        if c == b"x":
            offset = reader.consumed
            digits = reader.read_exact(2)
            if not _HEX2_RE.fullmatch(digits):
                raise StructuralError(f"invalid \\x escape {digits!r}", offset)
            buf.append(int(digits.decode("ascii"), 16))
        else:
            buf += _UNESCAPES.get(c, c)


def decode_text(raw: bytes, reader: BudgetedReader) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise StructuralError(f"invalid UTF-8: {exc}", reader.consumed) from exc


# ----------------------------------------------------------------------------
# Formatter
# ----------------------------------------------------------------------------


class NotationFormatter(Formatter):
    """Writes application/llsd+notation."""

    def do_format(self, value: Value, sink: BinaryIO) -> int:
        return self._write(value, sink, 0)

    def _newline(self, sink: BinaryIO, depth: int) -> None:
        if self.options.pretty:
            sink.write(b"\n" + (self.options.indent * depth).encode("ascii"))

    def _write(self, value: Value, sink: BinaryIO, depth: int) -> int:
        kind = value.kind
        data = value.data

        if kind is Kind.MAP:
            sink.write(b"{")
            count = 1
            for i, (key, item) in enumerate(value.items()):
                if i:
                    sink.write(b",")
                self._newline(sink, depth + 1)
                sink.write(b"'" + escape_text(key, "'") + b"':")
                count += self._write(item, sink, depth + 1)
            if data:
                self._newline(sink, depth)
            sink.write(b"}")
            return count

        if kind is Kind.ARRAY:
            sink.write(b"[")
            count = 1
            for i, item in enumerate(data):
                if i:
                    sink.write(b",")
                self._newline(sink, depth + 1)
                count += self._write(item, sink, depth + 1)
            if data:
                self._newline(sink, depth)
            sink.write(b"]")
            return count

        sink.write(self._scalar(kind, data))
        return 1

    def _scalar(self, kind: Kind, data) -> bytes:
        if kind is Kind.UNDEFINED:
            return b"!"
        if kind is Kind.BOOLEAN:
            if self.options.bool_alpha:
                return b"true" if data else b"false"
            return b"1" if data else b"0"
        if kind is Kind.INTEGER:
            return b"i%d" % data
        if kind is Kind.REAL:
            return b"r" + self.format_real(data).encode("ascii")
        if kind is Kind.UUID:
            return b"u" + str(data).encode("ascii")
        if kind is Kind.STRING:
            return b"'" + escape_text(data, "'") + b"'"
        if kind is Kind.URI:
            return b'l"' + escape_text(data, '"') + b'"'
        if kind is Kind.DATE:
            return b'd"' + format_date(data).encode("ascii") + b'"'
        # Kind.BINARY
        encoding = self.options.binary_encoding
        if encoding == "raw":
            return b'b(%d)"' % len(data) + data + b'"'
        if encoding == "base16":
            return b'b16"' + base64.b16encode(data) + b'"'
        return b'b64"' + base64.b64encode(data) + b'"'


# ----------------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------------


class NotationParser(Parser):
    """Reads application/llsd+notation, one value per call.

    Leading whitespace is skipped; bytes after the value are left in the
    source so successive calls read successive values.
    """

    def __init__(self, options: ParserOptions | None = None) -> None:
        super().__init__(options)
        self._dispatch: dict[bytes, Callable[[BudgetedReader, bytes], tuple[Value, int]]] = {
            b"{": self._parse_map,
            b"[": self._parse_array,
            b"!": lambda r, c: (Value(), 1),
            b"0": self._parse_digit_boolean,
            b"1": self._parse_digit_boolean,
            b"t": self._parse_boolean,
            b"T": self._parse_boolean,
            b"f": self._parse_boolean,
            b"F": self._parse_boolean,
            b"i": self._parse_integer,
            b"r": self._parse_real,
            b"u": self._parse_uuid,
            b"'": self._parse_quoted_string,
            b'"': self._parse_quoted_string,
            b"s": self._parse_sized_string,
            b"l": self._parse_uri,
            b"d": self._parse_date,
            b"b": self._parse_binary,
        }

    def do_parse(self, reader: BudgetedReader) -> tuple[Value, int]:
        return self._parse_node(reader)

    def _parse_node(self, reader: BudgetedReader) -> tuple[Value, int]:
        reader.skip_whitespace()
        offset = reader.consumed
        c = reader.getc()
        handler = self._dispatch.get(c)
        if handler is None:
            raise StructuralError(f"invalid notation token {c!r}", offset)
        return handler(reader, c)

    # -- helpers -------------------------------------------------------------

    def _expect(self, reader: BudgetedReader, wanted: bytes) -> None:
        offset = reader.consumed
        c = reader.getc()
        if c != wanted:
            raise StructuralError(f"expected {wanted!r}, got {c!r}", offset)

    def _read_run(self, reader: BudgetedReader, allowed: bytes) -> bytes:
        # getc() fails if the run would continue past the byte budget
        buf = bytearray()
        while True:
            c = reader.lookahead()
            if not c or c not in allowed:
                return bytes(buf)
            buf += reader.getc()

    def _read_quote(self, reader: BudgetedReader) -> bytes:
        offset = reader.consumed
        q = reader.getc()
        if q not in (b"'", b'"'):
            raise StructuralError(f"expected quote, got {q!r}", offset)
        return q

    def _read_sized(self, reader: BudgetedReader) -> bytes:
        """Read ``(N)"..."`` where N must equal the enclosed byte count."""
        self._expect(reader, b"(")
        offset = reader.consumed
        digits = self._read_run(reader, b"0123456789")
        if not digits:
            raise StructuralError("missing explicit length", offset)
        self._expect(reader, b")")
        size = int(digits.decode("ascii"))
        q = self._read_quote(reader)
        data = reader.read_exact(size)
        offset = reader.consumed
        if reader.getc() != q:
            raise LengthMismatchError(f"declared length {size} does not match content", offset)
        return data

    # -- scalars -------------------------------------------------------------

    def _parse_digit_boolean(self, reader: BudgetedReader, digit: bytes) -> tuple[Value, int]:
        # a bare number such as 10 or 0.5 is not a boolean
        nxt = reader.lookahead()
        if nxt and (nxt.isalnum() or nxt == b"."):
            raise StructuralError(f"untyped number starting {digit + nxt!r}", reader.consumed - 1)
        return Value.boolean(digit == b"1"), 1

    def _parse_boolean(self, reader: BudgetedReader, first: bytes) -> tuple[Value, int]:
        offset = reader.consumed - 1
        word = first + self._read_run(reader, b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
        if word in _TRUE_WORDS:
            return Value.boolean(True), 1
        if word in _FALSE_WORDS:
            return Value.boolean(False), 1
        raise StructuralError(f"invalid boolean {word!r}", offset)

    def _parse_integer(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        offset = reader.consumed
        text = self._read_run(reader, b"+-0123456789")
        if not _INT_RE.fullmatch(text):
            raise StructuralError(f"invalid integer {text!r}", offset)
        return Value.integer(int(text.decode("ascii"))), 1

    def _parse_real(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        offset = reader.consumed
        text = self._read_run(reader, b"+-.0123456789eEinfa")
        if not _REAL_RE.fullmatch(text):
            raise StructuralError(f"invalid real {text!r}", offset)
        return Value.real(float(text.decode("ascii"))), 1

    def _parse_uuid(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        offset = reader.consumed
        text = reader.read_exact(36)
        if not _UUID_RE.fullmatch(text):
            raise StructuralError(f"invalid uuid {text!r}", offset)
        return Value.uuid(uuid.UUID(text.decode("ascii"))), 1

    def _parse_quoted_string(self, reader: BudgetedReader, quote: bytes) -> tuple[Value, int]:
        return Value.string(decode_text(read_delimited(reader, quote), reader)), 1

    def _parse_sized_string(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        return Value.string(decode_text(self._read_sized(reader), reader)), 1

    def _parse_uri(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        q = self._read_quote(reader)
        return Value.uri(decode_text(read_delimited(reader, q), reader)), 1

    def _parse_date(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        q = self._read_quote(reader)
        offset = reader.consumed
        text = decode_text(read_delimited(reader, q), reader)
        try:
            return Value.date(parse_date(text)), 1
        except ValueError as exc:
            raise StructuralError(str(exc), offset) from exc

    def _parse_binary(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        if reader.peek() == b"(":
            return Value.binary(self._read_sized(reader)), 1
        offset = reader.consumed
        base = reader.read_exact(2)
        if base not in (b"64", b"16"):
            raise StructuralError(f"unsupported binary encoding b{base!r}", offset)
        self._expect(reader, b'"')
        encoded = read_delimited(reader, b'"')
        try:
            if base == b"64":
                decoded = base64.b64decode(b"".join(encoded.split()), validate=True)
            else:
                decoded = base64.b16decode(b"".join(encoded.split()), casefold=True)
        except binascii.Error as exc:
            raise StructuralError(f"bad base{base.decode()} data: {exc}", offset) from exc
        return Value.binary(decoded), 1

    # -- containers ----------------------------------------------------------

    def _parse_key(self, reader: BudgetedReader) -> str:
        offset = reader.consumed
        c = reader.getc()
        if c in (b"'", b'"'):
            raw = read_delimited(reader, c)
        elif c == b"s":
            raw = self._read_sized(reader)
        else:
            raise StructuralError(f"invalid map key {c!r}", offset)
        return decode_text(raw, reader)

    def _parse_map(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        self.enter_container(reader.consumed)
        result = Value.map()
        count = 1
        reader.skip_whitespace()
        if reader.peek() == b"}":
            reader.getc()
            self.leave_container()
            return result, count
        while True:
            reader.skip_whitespace()
            key = self._parse_key(reader)
            reader.skip_whitespace()
            self._expect(reader, b":")
            item, n = self._parse_node(reader)
            result.data[key] = item
            count += n
            reader.skip_whitespace()
            offset = reader.consumed
            c = reader.getc()
            if c == b"}":
                break
            if c != b",":
                raise StructuralError(f"expected ',' or '}}' in map, got {c!r}", offset)
        self.leave_container()
        return result, count

    def _parse_array(self, reader: BudgetedReader, _: bytes) -> tuple[Value, int]:
        self.enter_container(reader.consumed)
        result = Value.array()
        count = 1
        reader.skip_whitespace()
        if reader.peek() == b"]":
            reader.getc()
            self.leave_container()
            return result, count
        while True:
            item, n = self._parse_node(reader)
            result.data.append(item)
            count += n
            reader.skip_whitespace()
            offset = reader.consumed
            c = reader.getc()
            if c == b"]":
                break
            if c != b",":
                raise StructuralError(f"expected ',' or ']' in array, got {c!r}", offset)
        self.leave_container()
        return result, count


class NotationCodec(Codec):
    """Notation LLSD codec."""

    format_id = Format.NOTATION
    mime_type = NOTATION_MIME_TYPE
    formatter_class = NotationFormatter
    parser_class = NotationParser
