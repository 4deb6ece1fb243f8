"""Formatter and parser configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .constants import SIZE_UNLIMITED


class FormatterOptions(BaseModel):
    """Output options shared by all formatters.

    Each formatter reads only the options that apply to its grammar.
    """

    bool_alpha: bool = Field(False, description="Write booleans as true/false instead of 1/0")
    real_format: str | None = Field(
        None, description="printf-style format for reals, e.g. '%.2f'; None is shortest round-trip"
    )
    binary_encoding: Literal["base64", "base16", "raw"] = Field(
        "base64", description="Notation encoding for binary blobs"
    )
    pretty: bool = Field(False, description="Newlines and indentation inside containers")
    indent: str = Field("  ", description="Indent unit used when pretty is set")
    binary_header: bool = Field(False, description="Prefix binary output with <?llsd/binary?>")

    @field_validator("real_format")
    @classmethod
    def _check_real_format(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            value % 1.0
        except (TypeError, ValueError) as exc:
            raise ValueError(f"real_format must format a single float: {exc}") from exc
        return value


class ParserOptions(BaseModel):
    """Input options shared by all parsers."""

    max_bytes: int = Field(
        SIZE_UNLIMITED, ge=SIZE_UNLIMITED, description="Byte budget; SIZE_UNLIMITED disables the check"
    )
    max_depth: int = Field(256, ge=1, description="Deepest container nesting accepted")
