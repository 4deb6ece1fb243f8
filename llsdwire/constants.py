"""LLSD constants and enums: value kinds, wire formats, tags and sentinels."""

from enum import IntEnum

# ----------------------------------------------------------------------------
# Parse/format sentinels
# ----------------------------------------------------------------------------

PARSE_FAILURE = -1  # returned instead of a node count
SIZE_UNLIMITED = -1  # byte budget that disables length enforcement

# ----------------------------------------------------------------------------
# Value kinds
# ----------------------------------------------------------------------------


class Kind(IntEnum):
    """The closed set of LLSD value kinds."""

    UNDEFINED = 0
    BOOLEAN = 1
    INTEGER = 2
    REAL = 3
    STRING = 4
    UUID = 5
    DATE = 6
    URI = 7
    BINARY = 8
    MAP = 9
    ARRAY = 10


# ----------------------------------------------------------------------------
# Wire formats
# ----------------------------------------------------------------------------


class Format(IntEnum):
    """Serialization formats known to the codec registry."""

    BINARY = 0x01
    NOTATION = 0x02
    XML = 0x03


BINARY_MIME_TYPE = "application/llsd+binary"
NOTATION_MIME_TYPE = "application/llsd+notation"
XML_MIME_TYPE = "application/llsd+xml"

MIME_TYPES = {
    Format.BINARY: BINARY_MIME_TYPE,
    Format.NOTATION: NOTATION_MIME_TYPE,
    Format.XML: XML_MIME_TYPE,
}

# Optional header some peers put in front of a binary document
BINARY_HEADER = b"<?llsd/binary?>\n"

# ----------------------------------------------------------------------------
# Binary wire tags
# ----------------------------------------------------------------------------

TAG_UNDEF = b"!"
TAG_TRUE = b"1"
TAG_FALSE = b"0"
TAG_INTEGER = b"i"
TAG_REAL = b"r"
TAG_UUID = b"u"
TAG_DATE = b"d"
TAG_STRING = b"s"
TAG_URI = b"l"
TAG_BINARY = b"b"
TAG_ARRAY_BEGIN = b"["
TAG_ARRAY_END = b"]"
TAG_MAP_BEGIN = b"{"
TAG_MAP_END = b"}"
TAG_MAP_KEY = b"k"

# ----------------------------------------------------------------------------
# Numeric limits
# ----------------------------------------------------------------------------

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# ----------------------------------------------------------------------------
# Error codes
# ----------------------------------------------------------------------------


class ErrorCode(IntEnum):
    """Numeric codes carried by parse errors."""

    OK = 0x0000
    ERR_STRUCTURE = 0x0001
    ERR_LENGTH_MISMATCH = 0x0002
    ERR_TRUNCATED = 0x0003
    ERR_UNKNOWN_ELEMENT = 0x0004
