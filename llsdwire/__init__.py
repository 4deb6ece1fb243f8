# Copyright 2025 The llsdwire Authors
# SPDX-License-Identifier: Apache-2.0
r"""llsdwire - LLSD structured data and its binary, notation and XML encodings.

The package provides:
- ``Value``, a tagged-union tree over the eleven LLSD kinds
- Binary, notation and XML formatter/parser pairs with byte budgets and node counts
- Local recovery for unknown elements inside XML containers
- A format-selecting facade (``to_xml``/``from_xml`` ...) and a codec registry
- A small CLI for converting and inspecting documents
"""

__version__ = "0.3.0"

# Import public API from modules
from .codecs import (
    BinaryFormatter,
    BinaryParser,
    Codec,
    Formatter,
    NotationFormatter,
    NotationParser,
    Parser,
    XMLFormatter,
    XMLParser,
    get_codec,
    list_codecs,
    register_codec,
)
from .constants import (
    BINARY_MIME_TYPE,
    NOTATION_MIME_TYPE,
    PARSE_FAILURE,
    SIZE_UNLIMITED,
    XML_MIME_TYPE,
    ErrorCode,
    Format,
    Kind,
)
from .errors import (
    LengthMismatchError,
    LLSDParseError,
    LLSDSerializationError,
    StructuralError,
    TruncatedInputError,
    UnknownElementError,
)
from .options import FormatterOptions, ParserOptions
from .serialize import (
    detect_format,
    format_binary,
    format_notation,
    format_pretty_xml,
    format_value,
    format_xml,
    from_binary,
    from_notation,
    from_xml,
    parse_any,
    parse_binary,
    parse_notation,
    parse_value,
    parse_xml,
    to_binary,
    to_notation,
    to_xml,
)
from .value import URI, Value

# Public API exports
__all__ = [
    "__version__",
    # Core classes
    "Value",
    "URI",
    "FormatterOptions",
    "ParserOptions",
    "Codec",
    "Formatter",
    "Parser",
    "BinaryFormatter",
    "BinaryParser",
    "NotationFormatter",
    "NotationParser",
    "XMLFormatter",
    "XMLParser",
    # Constants and enums
    "PARSE_FAILURE",
    "SIZE_UNLIMITED",
    "BINARY_MIME_TYPE",
    "NOTATION_MIME_TYPE",
    "XML_MIME_TYPE",
    "Kind",
    "Format",
    "ErrorCode",
    # Errors
    "LLSDParseError",
    "StructuralError",
    "LengthMismatchError",
    "TruncatedInputError",
    "UnknownElementError",
    "LLSDSerializationError",
    # Facade
    "to_binary",
    "from_binary",
    "to_notation",
    "from_notation",
    "to_xml",
    "from_xml",
    "format_binary",
    "format_notation",
    "format_xml",
    "format_pretty_xml",
    "parse_binary",
    "parse_notation",
    "parse_xml",
    "parse_any",
    "detect_format",
    "format_value",
    "parse_value",
    # Codec utilities
    "get_codec",
    "list_codecs",
    "register_codec",
]
