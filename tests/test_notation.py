"""Tests for the notation LLSD codec."""

import datetime
import io
import uuid

import pytest

from llsdwire import (
    PARSE_FAILURE,
    FormatterOptions,
    LengthMismatchError,
    NotationFormatter,
    NotationParser,
    StructuralError,
    TruncatedInputError,
    Value,
    format_notation,
    from_notation,
    parse_notation,
)


def test_explicit_length_string() -> None:
    """Test s(N) strings must declare their exact length."""
    assert from_notation(b's(8)"whatever"') == (Value.string("whatever"), 1)
    assert from_notation(b"s(8)'whatever'") == (Value.string("whatever"), 1)
    assert from_notation(b's(7)"whatever"') == (Value(), PARSE_FAILURE)
    assert from_notation(b's(9)"whatever"') == (Value(), PARSE_FAILURE)
    assert from_notation(b's(5)"hi"') == (Value(), PARSE_FAILURE)
    print("✓ Explicit-length strings")


def test_explicit_length_binary() -> None:
    """Test b(N) blobs and the encoded binary forms."""
    assert from_notation(b'b(6)"abc321"') == (Value.binary(b"abc321"), 1)
    assert from_notation(b'b16"616263333231"') == (Value.binary(b"abc321"), 1)
    assert from_notation(b'b64"YWJjMzIx"') == (Value.binary(b"abc321"), 1)
    assert from_notation(b'b(7)"abc321"') == (Value(), PARSE_FAILURE)
    assert from_notation(b'b(5)"hi"') == (Value(), PARSE_FAILURE)
    assert from_notation(b'b(1000000)"abc321"') == (Value(), PARSE_FAILURE)
    assert from_notation(b'b32"abc"') == (Value(), PARSE_FAILURE)
    assert from_notation(b'b64"not base64!"') == (Value(), PARSE_FAILURE)


@pytest.mark.parametrize("text", [b"true", b"t", b"1", b"T", b"TRUE"])
def test_true_spellings(text: bytes) -> None:
    assert from_notation(text) == (Value.boolean(True), 1)


@pytest.mark.parametrize("text", [b"false", b"f", b"0", b"F", b"FALSE"])
def test_false_spellings(text: bytes) -> None:
    assert from_notation(text) == (Value.boolean(False), 1)


@pytest.mark.parametrize(
    "text",
    [
        b"{'ha ha'",
        b"['ha ha'",
        b"'ha ha",
        b"g48ejlnfr",
        b"TR",
        b"FAL",
        b"True",
        b"421",
        b"456.7",
        b"10",
        b"123",
        b"0.5",
        b"1e3",
        b"0x",
        b"u123",
        b"i",
        b"ix",
        b"r",
        b"r1.2.3",
        b'd"2007-12-28"',
        b'l"unterminated',
        b"{'a':i1,}",
        b"{'a' i1}",
        b"[i1 i2]",
        b"{i1:i2}",
        b"",
        b"   ",
    ],
)
def test_malformed_input_fails(text: bytes) -> None:
    """Test malformed notation fails as a whole with no partial value."""
    assert from_notation(text) == (Value(), PARSE_FAILURE)


def test_container_counts() -> None:
    """Test node counts for maps and arrays."""
    value, count = from_notation(b"{'amy':i23,'bob':!,'cam':r1.23}")
    assert count == 4
    assert value == {"amy": 23, "bob": None, "cam": 1.23}

    value, count = from_notation(b"{'amy':i23,'bob':{'dill':i1},'cam':r1.23}")
    assert count == 5
    assert value["bob"]["dill"] == Value.integer(1)

    assert from_notation(b"[i23,!,r1.23]") == (Value([23, None, 1.23]), 4)

    dogs = (
        b"{'dogs':["
        b"{'name':'fido','tricks':['sit','roll']},"
        b"{'name':'rex','tricks':['beg']}"
        b"]}"
    )
    value, count = from_notation(dogs)
    assert count == 11
    assert value["dogs"][0]["tricks"][1] == Value.string("roll")


def test_whitespace_between_tokens() -> None:
    """Test whitespace is allowed between tokens."""
    text = b" { 'a' : i1 ,\n\t'b' : [ i2 , i3 ] }"
    value, count = from_notation(text)
    assert count == 5
    assert value == {"a": 1, "b": [2, 3]}


def test_key_forms() -> None:
    """Test map keys may use any string form."""
    value, _ = from_notation(b"{\"dq\":i1,'sq':i2,s(2)\"sz\":i3}")
    assert value.keys() == ["dq", "sq", "sz"]


def test_scalars() -> None:
    """Test scalar literals."""
    assert from_notation(b"!") == (Value(), 1)
    assert from_notation(b"i-17") == (Value.integer(-17), 1)
    assert from_notation(b"i+5") == (Value.integer(5), 1)
    assert from_notation(b"r-1.5e3") == (Value.real(-1500.0), 1)
    assert from_notation(b"r.5") == (Value.real(0.5), 1)
    assert from_notation(b"rinf")[0].data == float("inf")
    nan, count = from_notation(b"rnan")
    assert count == 1 and nan.data != nan.data

    u = "d7f4aeca-88f1-42a1-b385-b9db18abb255"
    assert from_notation(b"u" + u.encode()) == (Value.uuid(uuid.UUID(u)), 1)

    when, count = from_notation(b'd"2007-12-28T09:22:53.10Z"')
    assert count == 1
    assert when.data == datetime.datetime(2007, 12, 28, 9, 22, 53, 100000, tzinfo=datetime.timezone.utc)

    assert from_notation(b'l"http://example.com/?a=\\"b\\""') == (Value.uri('http://example.com/?a="b"'), 1)


def test_escapes() -> None:
    """Test backslash escapes in quoted strings."""
    value, _ = from_notation(b"'a\\nb\\x41\\q\\'\\\\'")
    assert value.data == "a\nbAq'\\"
    value, _ = from_notation(b"'\\xc3\\xa9'")
    assert value.data == "é"
    assert from_notation(b"'\\xZZ'") == (Value(), PARSE_FAILURE)


def test_formatter_output() -> None:
    """Test the exact text the formatter writes."""
    assert format_notation(Value()) == b"!"
    assert format_notation({"b": "x'y", "a": 1}) == b"{'a':i1,'b':'x\\'y'}"
    assert format_notation([True, None, 1.5]) == b"[1,!,r1.5]"
    assert format_notation("tab\there\x01") == b"'tab\\there\\x01'"
    assert format_notation(Value.uri('q"x')) == b'l"q\\"x"'
    assert format_notation(datetime.datetime(2006, 4, 24, 16, 11, 33)) == b'd"2006-04-24T16:11:33Z"'
    assert format_notation(uuid.UUID(int=0)) == b"u00000000-0000-0000-0000-000000000000"
    assert format_notation({}) == b"{}"
    assert format_notation([]) == b"[]"


def test_formatter_options() -> None:
    """Test boolean, real and binary rendering options."""
    assert format_notation(True, FormatterOptions(bool_alpha=True)) == b"true"
    assert format_notation(False, FormatterOptions(bool_alpha=True)) == b"false"
    assert format_notation(1.0, FormatterOptions(real_format="%.2f")) == b"r1.00"

    blob = b"abc"
    assert format_notation(blob) == b'b64"YWJj"'
    assert format_notation(blob, FormatterOptions(binary_encoding="base16")) == b'b16"616263"'
    assert format_notation(blob, FormatterOptions(binary_encoding="raw")) == b'b(3)"abc"'

    formatter = NotationFormatter()
    formatter.bool_alpha = True
    formatter.real_format = "%.1f"
    assert formatter.format_bytes(Value([True, 1.23456])) == b"[true,r1.2]"


def test_pretty_output_parses_back() -> None:
    """Test pretty output is indented and still parses."""
    tree = Value({"a": [1, 2], "b": {"c": None}, "e": []})
    text = format_notation(tree, FormatterOptions(pretty=True))
    assert b"\n  'a':[\n    i1,\n    i2\n  ]" in text
    assert parse_notation(text) == tree


def test_successive_values_from_stream() -> None:
    """Test one value is read per call and the rest is left in the stream."""
    stream = io.BytesIO(b"i1\n'two'\n[i3]\n")
    assert from_notation(stream) == (Value(1), 1)
    assert stream.tell() == 2
    assert from_notation(stream) == (Value("two"), 1)
    assert from_notation(stream) == (Value([3]), 2)
    assert from_notation(stream) == (Value(), PARSE_FAILURE)


def test_counts_and_bytes_agree() -> None:
    """Test formatter and parser agree on nodes and bytes."""
    tree = Value({"list": [1, 2.5, "s", None], "blob": b"\x00\x01", "when": datetime.datetime(2020, 1, 1)})
    formatter = NotationFormatter()
    sink = io.BytesIO()
    nodes = formatter.format(tree, sink)

    parser = NotationParser()
    value, count = parser.parse(sink.getvalue())
    assert value == tree
    assert count == nodes == 8
    assert parser.bytes_consumed == formatter.bytes_written


def test_error_kinds() -> None:
    """Test the raising helper reports the error category."""
    with pytest.raises(LengthMismatchError):
        parse_notation(b's(7)"whatever"')
    with pytest.raises(TruncatedInputError):
        parse_notation(b"'open")
    with pytest.raises(StructuralError):
        parse_notation(b"421")


def test_round_trip_all_kinds() -> None:
    """Test every kind survives a notation round trip."""
    tree = Value.map(
        {
            "undef": None,
            "bool": False,
            "int": 2**31 - 1,
            "real": -34379.0438,
            "str": "quote ' dq \" back \\ nl \n bell \a uni é\U0001f600",
            "uuid": uuid.UUID("d7f4aeca-88f1-42a1-b385-b9db18abb255"),
            "date": datetime.datetime(2006, 4, 24, 16, 11, 33, 123456),
            "blob": bytes(range(256)),
            "nested": [[], {}, [1, [2, [3]]]],
            "": "empty key",
        }
    )
    tree["uri"] = Value.uri("http://example.com/a b")
    for encoding in ("base64", "base16", "raw"):
        text = format_notation(tree, FormatterOptions(binary_encoding=encoding))
        assert parse_notation(text) == tree


@pytest.mark.parametrize(
    "doc",
    [
        b"i123",
        b"r1.25",
        b"true",
        b"[i1,i2]",
        b"{'a':'b'}",
        b's(8)"whatever"',
        b'b64"YWJj"',
    ],
)
def test_byte_budget(doc: bytes) -> None:
    """Test a budget one byte short fails and an exact budget succeeds."""
    assert from_notation(doc, max_bytes=len(doc) - 1) == (Value(), PARSE_FAILURE)
    value, count = from_notation(doc, max_bytes=len(doc))
    assert count != PARSE_FAILURE
    assert value == parse_notation(doc)


def test_token_cut_by_budget_fails() -> None:
    """Test a number or word cut off by the budget is not read as a shorter one."""
    assert from_notation(b"i123", max_bytes=3) == (Value(), PARSE_FAILURE)
    assert from_notation(b"r1.25", max_bytes=3) == (Value(), PARSE_FAILURE)
    assert from_notation(b"true", max_bytes=1) == (Value(), PARSE_FAILURE)
    assert from_notation(b"10", max_bytes=1) == (Value(), PARSE_FAILURE)
    with pytest.raises(TruncatedInputError):
        parse_notation(b"i123", max_bytes=2)

    # a token that ends at the budget may be followed by anything
    assert from_notation(b"i12,", max_bytes=3) == (Value.integer(12), 1)
    assert from_notation(b"1]", max_bytes=1) == (Value.boolean(True), 1)
    print("✓ Budget-cut tokens")
