"""LLSD codec implementations and the per-format registry."""

from ..constants import Format
from ..options import FormatterOptions, ParserOptions
from .base import Codec, Formatter, Parser
from .binary_codec import BinaryCodec, BinaryFormatter, BinaryParser
from .notation_codec import NotationCodec, NotationFormatter, NotationParser
from .xml_codec import XMLCodec, XMLFormatter, XMLParser

__all__ = [
    "Codec",
    "Formatter",
    "Parser",
    "BinaryCodec",
    "BinaryFormatter",
    "BinaryParser",
    "NotationCodec",
    "NotationFormatter",
    "NotationParser",
    "XMLCodec",
    "XMLFormatter",
    "XMLParser",
    "register_codec",
    "get_codec",
    "list_codecs",
]


# Codec registry
_CODECS: dict[int, type[Codec]] = {}


def register_codec(format_id: int, codec_class: type[Codec]) -> None:
    """Register a codec implementation."""
    _CODECS[format_id] = codec_class


def get_codec(
    format_id: int,
    options: FormatterOptions | None = None,
    parser_options: ParserOptions | None = None,
) -> Codec:
    """Get a codec instance by format ID."""
    if format_id not in _CODECS:
        raise ValueError(f"Unsupported format ID: {format_id}")
    return _CODECS[format_id](options, parser_options)


def list_codecs() -> list[int]:
    """List all registered format IDs."""
    return list(_CODECS.keys())


# Register default codecs
register_codec(Format.BINARY, BinaryCodec)
register_codec(Format.NOTATION, NotationCodec)
register_codec(Format.XML, XMLCodec)
