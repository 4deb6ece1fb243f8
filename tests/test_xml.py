"""Tests for the XML LLSD codec."""

import datetime
import io
import uuid

import pytest

from llsdwire import (
    PARSE_FAILURE,
    FormatterOptions,
    StructuralError,
    UnknownElementError,
    Value,
    XMLFormatter,
    XMLParser,
    format_pretty_xml,
    format_xml,
    from_xml,
    parse_xml,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (Value(), b"<llsd><undef /></llsd>\n"),
        (Value.integer(3463), b"<llsd><integer>3463</integer></llsd>\n"),
        (Value.boolean(True), b"<llsd><boolean>1</boolean></llsd>\n"),
        (Value.real(1.5), b"<llsd><real>1.5</real></llsd>\n"),
        (Value.string(""), b"<llsd><string /></llsd>\n"),
        (Value.string("ha ha"), b"<llsd><string>ha ha</string></llsd>\n"),
        (Value.uuid(None), b"<llsd><uuid /></llsd>\n"),
        (
            Value.uuid("d7f4aeca-88f1-42a1-b385-b9db18abb255"),
            b"<llsd><uuid>d7f4aeca-88f1-42a1-b385-b9db18abb255</uuid></llsd>\n",
        ),
        (Value.uri("http://example.com/"), b"<llsd><uri>http://example.com/</uri></llsd>\n"),
        (
            Value.date(datetime.datetime(2006, 4, 24, 16, 11, 33)),
            b"<llsd><date>2006-04-24T16:11:33Z</date></llsd>\n",
        ),
        (Value.binary(b"hello"), b'<llsd><binary encoding="base64">aGVsbG8=</binary></llsd>\n'),
        (Value.array(), b"<llsd><array /></llsd>\n"),
        (Value.map(), b"<llsd><map /></llsd>\n"),
    ],
)
def test_formatter_output(value: Value, expected: bytes) -> None:
    """Test the exact document written for each kind."""
    assert format_xml(value) == expected


def test_map_keys_in_order() -> None:
    """Test map entries are written in key order."""
    assert format_xml({"b": 1, "a": [True]}) == (
        b"<llsd><map><key>a</key><array><boolean>1</boolean></array>"
        b"<key>b</key><integer>1</integer></map></llsd>\n"
    )
    print("✓ Map key order")


def test_formatter_options() -> None:
    """Test boolean and real formatting options."""
    assert format_xml(True, FormatterOptions(bool_alpha=True)) == b"<llsd><boolean>true</boolean></llsd>\n"
    assert format_xml(False) == b"<llsd><boolean>0</boolean></llsd>\n"

    formatter = XMLFormatter()
    formatter.real_format = "%.2f"
    assert formatter.format_bytes(Value.real(1.0)) == b"<llsd><real>1.00</real></llsd>\n"
    assert formatter.format_bytes(Value.real(-34379.0438)) == b"<llsd><real>-34379.04</real></llsd>\n"
    formatter.real_format = "%.0f"
    assert formatter.format_bytes(Value.real(3287.4387)) == b"<llsd><real>3287</real></llsd>\n"


def test_escaping() -> None:
    """Test markup characters are escaped and invalid characters dropped."""
    assert format_xml("a<b&c>d") == b"<llsd><string>a&lt;b&amp;c&gt;d</string></llsd>\n"
    assert format_xml("cr\r\nlf") == b"<llsd><string>cr&#13;\nlf</string></llsd>\n"
    assert format_xml("a\x01b\x0bc\ufffe") == b"<llsd><string>abc</string></llsd>\n"
    assert format_xml({"<k>": 1}) == b"<llsd><map><key>&lt;k&gt;</key><integer>1</integer></map></llsd>\n"

    assert parse_xml(format_xml("cr\r\nlf\ttab")) == Value.string("cr\r\nlf\ttab")


def test_unknown_element_in_map_is_substituted() -> None:
    """Test an unknown element between entries becomes a counted Undefined."""
    doc = (
        b"<llsd><map><key>amy</key><integer>23</integer>"
        b"<html><body>x</body></html>"
        b"<key>cam</key><real>1.23</real></map></llsd>"
    )
    value, count = from_xml(doc)
    assert value == {"amy": 23, "cam": 1.23}
    assert count == 4
    print("✓ Local recovery in map")


def test_unknown_value_element_under_key() -> None:
    """Test an unknown element in a value position is stored as Undefined."""
    doc = (
        b"<llsd><map><key>amy</key><integer>23</integer>"
        b"<key>bob</key><bigint>99999999999999999</bigint>"
        b"<key>cam</key><real>1.23</real></map></llsd>"
    )
    value, count = from_xml(doc)
    assert value.keys() == ["amy", "bob", "cam"]
    assert value["bob"].is_undefined()
    assert count == 4


def test_unknown_element_in_array_is_substituted() -> None:
    """Test array recovery keeps position and continues."""
    doc = b"<llsd><array><integer>1</integer><foo /><integer>x</integer><integer>2</integer></array></llsd>"
    value, count = from_xml(doc)
    assert value == Value([1, None, None, 2])
    assert count == 5

    parser = XMLParser()
    parser.parse(doc)
    assert parser.substitutions == 2


def test_undecodable_values_are_substituted() -> None:
    """Test bad payloads inside containers become Undefined."""
    doc = (
        b"<llsd><array>"
        b"<uuid>not-a-uuid</uuid>"
        b"<date>yesterday</date>"
        b'<binary encoding="base85">abc</binary>'
        b"<binary>!!!!</binary>"
        b"<boolean>maybe</boolean>"
        b"<real>one</real>"
        b"</array></llsd>"
    )
    value, count = from_xml(doc)
    assert value.size() == 6
    assert all(item.is_undefined() for item in value)
    assert count == 7


def test_dangling_keys_and_values() -> None:
    """Test keys without values and values without keys are counted but not stored."""
    doc = b"<llsd><map><key>a</key><key>b</key><integer>1</integer></map></llsd>"
    assert from_xml(doc) == (Value({"b": 1}), 3)

    doc = b"<llsd><map><integer>1</integer><key>b</key><integer>2</integer></map></llsd>"
    assert from_xml(doc) == (Value({"b": 2}), 3)

    doc = b"<llsd><map><key>a</key><integer>1</integer><key>z</key></map></llsd>"
    assert from_xml(doc) == (Value({"a": 1}), 3)


@pytest.mark.parametrize(
    "doc",
    [
        b"<llsd><string>ha ha</string>",
        b"<html><body><string>ha ha</string></body></html>",
        b"<string>ha ha</string>",
        b"<key>ha ha</key>",
        b"<llsd><foo /></llsd>",
        b"<llsd><integer>abc</integer></llsd>",
        b"",
        b"not xml at all",
    ],
)
def test_document_level_failures(doc: bytes) -> None:
    """Test malformed documents fail as a whole."""
    assert from_xml(doc) == (Value(), PARSE_FAILURE)


def test_error_kinds() -> None:
    """Test the raising helper reports the error category."""
    with pytest.raises(StructuralError):
        parse_xml(b"<string>x</string>")
    with pytest.raises(UnknownElementError):
        parse_xml(b"<llsd><foo /></llsd>")


def test_empty_document() -> None:
    """Test <llsd /> is Undefined with no nodes."""
    assert from_xml(b"<llsd />") == (Value(), 0)
    assert from_xml(b"<llsd></llsd>") == (Value(), 0)


def test_only_first_value_is_read() -> None:
    value, count = from_xml(b"<llsd><integer>1</integer><integer>2</integer></llsd>")
    assert value == Value(1)
    assert count == 1


def test_lenient_scalar_decoding() -> None:
    """Test boolean spellings, whitespace and binary encodings."""
    assert parse_xml(b"<llsd><boolean>TRUE</boolean></llsd>") == Value(True)
    assert parse_xml(b"<llsd><boolean>false</boolean></llsd>") == Value(False)
    assert parse_xml(b"<llsd><boolean /></llsd>") == Value(False)
    assert parse_xml(b"<llsd><integer> 42 </integer></llsd>") == Value(42)
    assert parse_xml(b"<llsd><integer /></llsd>") == Value(0)
    assert parse_xml(b"<llsd><uuid /></llsd>") == Value.uuid(None)
    assert parse_xml(b'<llsd><?xml-stylesheet href="x"?><string>s</string></llsd>') == Value("s")
    assert parse_xml(b'<?xml version="1.0" ?>\n<llsd><real>1.5</real></llsd>') == Value(1.5)

    wrapped = b'<llsd><binary encoding="base64">aGVs\n  bG8=\n</binary></llsd>'
    assert parse_xml(wrapped) == Value(b"hello")
    assert parse_xml(b"<llsd><binary>aGVsbG8=</binary></llsd>") == Value(b"hello")
    assert parse_xml(b'<llsd><binary encoding="base16">68656c6c6f</binary></llsd>') == Value(b"hello")


def test_pretty_output() -> None:
    """Test pretty output indents and parses back."""
    tree = Value({"a": [1, 2], "b": {}})
    text = format_pretty_xml(tree)
    assert text == (
        b"<llsd>\n"
        b"<map>\n"
        b"  <key>a</key>\n"
        b"  <array>\n"
        b"    <integer>1</integer>\n"
        b"    <integer>2</integer>\n"
        b"  </array>\n"
        b"  <key>b</key>\n"
        b"  <map />\n"
        b"</map>\n"
        b"</llsd>\n"
    )
    assert parse_xml(text) == tree


def _xml_codepoints():
    yield from "\t\n\r"
    for lo, hi in ((0x20, 0xD7FF), (0xE000, 0xFFFD), (0x10000, 0x10FFFF)):
        for cp in range(lo, hi + 1):
            # noncharacters
            if 0xFDD0 <= cp <= 0xFDEF or (cp & 0xFFFE) == 0xFFFE:
                continue
            yield chr(cp)


def test_full_unicode_round_trip() -> None:
    """Test every XML-representable code point round-trips byte-identically."""
    text = "".join(_xml_codepoints())
    doc = format_xml(text)
    value, count = from_xml(doc)
    assert count == 1
    assert value.data == text
    assert format_xml(value) == doc


def test_counts_and_bytes_agree() -> None:
    """Test formatter and parser agree on nodes and bytes."""
    tree = Value(
        {
            "list": [1, 2.5, "s", None, [True]],
            "id": uuid.UUID("d7f4aeca-88f1-42a1-b385-b9db18abb255"),
            "empty": {},
        }
    )
    formatter = XMLFormatter()
    sink = io.BytesIO()
    nodes = formatter.format(tree, sink)
    parser = XMLParser()
    value, count = parser.parse(sink.getvalue())
    assert value == tree
    assert count == nodes == 10
    assert parser.bytes_consumed == formatter.bytes_written


def test_byte_budget_truncates_document() -> None:
    doc = format_xml({"a": "some text"})
    assert from_xml(doc, max_bytes=len(doc))[1] == 2
    assert from_xml(doc, max_bytes=len(doc) - 10) == (Value(), PARSE_FAILURE)
