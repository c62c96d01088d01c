"""
Claim Schema
=============

The decoded contents of a scanned token, before any ledger check.

A token either decodes to a well-formed ``Claim`` or to a
``DecodeFailure`` describing what was wrong with it. There is no
in-between: a claim with missing or defaulted fields cannot exist.

Wire payload (compact JSON, then base64):
    {"t": "REDSTEEP-DEMO", "id": "MED-001", "b": "B456789", "c": "f9a2"}
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class Claim(BaseModel):
    """
    A syntactically valid assertion carried by a token.

    Field aliases match the wire keys (``t``, ``id``, ``b``, ``c``).
    Extra keys are forbidden so that a payload carrying anything beyond
    the four claim fields is rejected rather than silently trimmed.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    tag: StrictStr = Field(alias="t", min_length=1, description="Protocol marker")
    id: StrictStr = Field(alias="id", min_length=1, description="Claimed product id")
    batch: StrictStr = Field(alias="b", min_length=1, description="Claimed lot code")
    checksum: StrictStr = Field(alias="c", min_length=1, description="Claimed checksum")

    @property
    def identity(self) -> tuple[str, str, str]:
        """The (id, batch, checksum) triple used for matching."""
        return (self.id, self.batch, self.checksum)

    def to_payload(self) -> dict[str, str]:
        """Wire mapping in canonical key order."""
        return self.model_dump(by_alias=True)


class DecodeError(str, Enum):
    """Why a token failed to decode into a Claim."""
    NOT_A_STRING = "not_a_string"
    TOO_LONG = "too_long"
    BAD_ENCODING = "bad_encoding"        # not base64, or not UTF-8 underneath
    BAD_JSON = "bad_json"
    NOT_A_MAPPING = "not_a_mapping"
    BAD_MARKER = "bad_marker"            # marker missing or wrong
    MISSING_FIELDS = "missing_fields"
    UNEXPECTED_FIELDS = "unexpected_fields"
    BAD_FIELD_TYPE = "bad_field_type"


class DecodeFailure(BaseModel):
    """A token that is not a Claim, with the reason it was rejected."""
    model_config = ConfigDict(frozen=True)

    error: DecodeError = Field(description="Failure kind")
    detail: str = Field(default="", description="Short human-readable explanation")

    def __bool__(self) -> bool:
        return False


DecodeResult = Union[Claim, DecodeFailure]
