"""XML LLSD codec.

Documents look like ``<llsd><map><key>a</key><integer>1</integer></map></llsd>``.
Tokenizing is left to ``xml.etree.ElementTree``; this module maps elements to
values. Inside ``<array>`` and ``<map>`` an element that cannot be decoded is
replaced by Undefined and decoding carries on with the next sibling.
"""

import base64
import binascii
import logging
import re
import uuid
from typing import BinaryIO
from xml.etree import ElementTree

from ..constants import XML_MIME_TYPE, Format, Kind
from ..errors import StructuralError, UnknownElementError
from ..options import ParserOptions
from ..reader import BudgetedReader
from ..value import NULL_UUID, Value, format_date, parse_date
from .base import Codec, Formatter, Parser

# Characters XML 1.0 cannot carry, even as character references
_INVALID_XML_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def xml_esc(text: str) -> bytes:
    """Escape text content, dropping characters XML cannot represent.

    ``\\r`` becomes ``&#13;`` so it survives end-of-line normalization.
    """
    text = _INVALID_XML_RE.sub("", text)
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("\r", "&#13;")
    return text.encode("utf-8")


def _elt(name: bytes, contents: bytes = b"", attrs: bytes = b"") -> bytes:
    if not contents:
        return b"<" + name + attrs + b" />"
    return b"<" + name + attrs + b">" + contents + b"</" + name + b">"


# ----------------------------------------------------------------------------
# Formatter
# ----------------------------------------------------------------------------


class XMLFormatter(Formatter):
    """Writes application/llsd+xml, without an XML declaration."""

    def do_format(self, value: Value, sink: BinaryIO) -> int:
        if self.options.pretty:
            sink.write(b"<llsd>\n")
            count = self._write(value, sink, 0)
            sink.write(b"\n</llsd>\n")
        else:
            sink.write(b"<llsd>")
            count = self._write(value, sink, 0)
            sink.write(b"</llsd>\n")
        return count

    def _indent(self, depth: int) -> bytes:
        return (self.options.indent * depth).encode("ascii")

    def _write(self, value: Value, sink: BinaryIO, depth: int) -> int:
        kind = value.kind
        if kind is Kind.MAP and value.size():
            return self._write_map(value, sink, depth)
        if kind is Kind.ARRAY and value.size():
            return self._write_array(value, sink, depth)
        sink.write(self._scalar(value))
        return 1

    def _write_map(self, value: Value, sink: BinaryIO, depth: int) -> int:
        pretty = self.options.pretty
        sink.write(b"<map>")
        count = 1
        for key, item in value.items():
            if pretty:
                sink.write(b"\n" + self._indent(depth + 1))
            sink.write(_elt(b"key", xml_esc(key)))
            if pretty:
                sink.write(b"\n" + self._indent(depth + 1))
            count += self._write(item, sink, depth + 1)
        if pretty:
            sink.write(b"\n" + self._indent(depth))
        sink.write(b"</map>")
        return count

    def _write_array(self, value: Value, sink: BinaryIO, depth: int) -> int:
        pretty = self.options.pretty
        sink.write(b"<array>")
        count = 1
        for item in value.data:
            if pretty:
                sink.write(b"\n" + self._indent(depth + 1))
            count += self._write(item, sink, depth + 1)
        if pretty:
            sink.write(b"\n" + self._indent(depth))
        sink.write(b"</array>")
        return count

    def _scalar(self, value: Value) -> bytes:
        kind = value.kind
        data = value.data
        if kind is Kind.UNDEFINED:
            return _elt(b"undef")
        if kind is Kind.BOOLEAN:
            if self.options.bool_alpha:
                return _elt(b"boolean", b"true" if data else b"false")
            return _elt(b"boolean", b"1" if data else b"0")
        if kind is Kind.INTEGER:
            return _elt(b"integer", b"%d" % data)
        if kind is Kind.REAL:
            return _elt(b"real", self.format_real(data).encode("ascii"))
        if kind is Kind.STRING:
            return _elt(b"string", xml_esc(data))
        if kind is Kind.UUID:
            return _elt(b"uuid", b"" if data == NULL_UUID else str(data).encode("ascii"))
        if kind is Kind.URI:
            return _elt(b"uri", xml_esc(data))
        if kind is Kind.DATE:
            return _elt(b"date", format_date(data).encode("ascii"))
        if kind is Kind.BINARY:
            return _elt(b"binary", base64.b64encode(data), b' encoding="base64"')
        # empty containers
        return _elt(b"map" if kind is Kind.MAP else b"array")


# ----------------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------------


def _text(node: ElementTree.Element) -> str:
    return node.text or ""


def _to_boolean(node: ElementTree.Element) -> Value | None:
    text = _text(node).strip().lower()
    if text in ("1", "true"):
        return Value.boolean(True)
    if text in ("0", "false", ""):
        return Value.boolean(False)
    return None


def _to_integer(node: ElementTree.Element) -> Value | None:
    text = _text(node).strip()
    try:
        return Value.integer(int(text) if text else 0)
    except ValueError:
        return None


def _to_real(node: ElementTree.Element) -> Value | None:
    text = _text(node).strip()
    try:
        return Value.real(float(text) if text else 0.0)
    except ValueError:
        return None


def _to_uuid(node: ElementTree.Element) -> Value | None:
    text = _text(node).strip()
    try:
        return Value.uuid(uuid.UUID(text) if text else None)
    except ValueError:
        return None


def _to_date(node: ElementTree.Element) -> Value | None:
    try:
        return Value.date(parse_date(_text(node).strip()))
    except ValueError:
        return None


def _to_binary(node: ElementTree.Element) -> Value | None:
    encoding = node.get("encoding", "base64")
    encoded = "".join(_text(node).split())
    try:
        if encoding == "base64":
            return Value.binary(base64.b64decode(encoded, validate=True))
        if encoding == "base16":
            return Value.binary(base64.b16decode(encoded, casefold=True))
    except (binascii.Error, ValueError):
        return None
    return None


_SCALAR_DECODERS = {
    "undef": lambda node: Value(),
    "boolean": _to_boolean,
    "integer": _to_integer,
    "real": _to_real,
    "string": lambda node: Value.string(_text(node)),
    "uuid": _to_uuid,
    "date": _to_date,
    "uri": lambda node: Value.uri(_text(node)),
    "binary": _to_binary,
}


class XMLParser(Parser):
    """Reads application/llsd+xml with local recovery inside containers."""

    def __init__(self, options: ParserOptions | None = None) -> None:
        super().__init__(options)
        self.substitutions = 0

    def reset(self) -> None:
        super().reset()
        self.substitutions = 0

    def do_parse(self, reader: BudgetedReader) -> tuple[Value, int]:
        self.substitutions = 0
        data = reader.read_all()
        try:
            root = ElementTree.fromstring(data)
        except ElementTree.ParseError as exc:
            raise StructuralError(f"not well-formed XML: {exc}") from exc
        if root.tag != "llsd":
            raise StructuralError(f"document root is <{root.tag}>, not <llsd>")
        if len(root) == 0:
            return Value(), 0
        node = root[0]
        decoded = self._decode(node)
        if decoded is None:
            raise UnknownElementError(f"cannot decode <{node.tag}> under <llsd>")
        return decoded

    def _decode(self, node: ElementTree.Element) -> tuple[Value, int] | None:
        """Decode one value element; None means substitute Undefined."""
        if node.tag == "map":
            return self._decode_map(node)
        if node.tag == "array":
            return self._decode_array(node)
        decoder = _SCALAR_DECODERS.get(node.tag)
        if decoder is None:
            return None
        value = decoder(node)
        if value is None:
            return None
        return value, 1

    def _substitute(self, node: ElementTree.Element, why: str) -> None:
        self.substitutions += 1
        logging.debug("Substituting undef for <%s>: %s", node.tag, why)

    def _decode_array(self, node: ElementTree.Element) -> tuple[Value, int]:
        self.enter_container(0)
        result = Value.array()
        count = 1
        for child in node:
            decoded = self._decode(child)
            if decoded is None:
                self._substitute(child, "unrecognized or undecodable element")
                decoded = (Value(), 1)
            result.data.append(decoded[0])
            count += decoded[1]
        self.leave_container()
        return result, count

    def _decode_map(self, node: ElementTree.Element) -> tuple[Value, int]:
        self.enter_container(0)
        result = Value.map()
        count = 1
        key: str | None = None
        for child in node:
            if child.tag == "key":
                if key is not None:
                    self._substitute(child, f"key {key!r} has no value")
                    count += 1
                key = _text(child)
                continue
            decoded = self._decode(child)
            if key is None:
                self._substitute(child, "no preceding <key>")
                count += 1
                continue
            if decoded is None:
                self._substitute(child, f"undecodable value for key {key!r}")
                decoded = (Value(), 1)
            result.data[key] = decoded[0]
            count += decoded[1]
            key = None
        if key is not None:
            self._substitute(node, f"key {key!r} has no value")
            count += 1
        self.leave_container()
        return result, count


class XMLCodec(Codec):
    """XML LLSD codec."""

    format_id = Format.XML
    mime_type = XML_MIME_TYPE
    formatter_class = XMLFormatter
    parser_class = XMLParser
