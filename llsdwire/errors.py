"""LLSD parse and serialization errors.

Codecs raise these internally. ``Parser.parse()`` turns any
``LLSDParseError`` into the ``PARSE_FAILURE`` sentinel, so callers of the
sentinel API never see them; the raising helpers in ``llsdwire.serialize``
let them through.
"""

from .constants import ErrorCode


class LLSDParseError(ValueError):
    """Exception raised when a parser rejects its input.

    The ``code`` attribute is one of the ``ErrorCode`` values and ``offset``
    is the byte offset where the problem was noticed (``None`` if unknown).
    """

    code: ErrorCode = ErrorCode.ERR_STRUCTURE

    def __init__(self, msg: str = "", offset: int | None = None) -> None:
        if offset is not None:
            msg = f"{msg} at byte {offset}"
        super().__init__(msg or self.code.name)
        self.offset = offset


class StructuralError(LLSDParseError):
    """Unknown leading tag or character, or malformed container framing."""

    code = ErrorCode.ERR_STRUCTURE


class LengthMismatchError(LLSDParseError):
    """A declared length does not match the framed content."""

    code = ErrorCode.ERR_LENGTH_MISMATCH


class TruncatedInputError(LLSDParseError):
    """Byte budget or input exhausted before a structure closed."""

    code = ErrorCode.ERR_TRUNCATED


class UnknownElementError(LLSDParseError):
    """Unrecognized or undecodable XML element."""

    code = ErrorCode.ERR_UNKNOWN_ELEMENT


class LLSDSerializationError(TypeError):
    """Exception raised when a Python object has no LLSD representation."""
