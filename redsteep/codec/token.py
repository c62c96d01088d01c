"""
Token Codec
============

Serializes a batch claim into the string carried by a scannable code,
and parses such strings back with strict envelope validation.

Wire Format (bit-exact across deployments):
    1. Compact JSON object with keys in this order, no whitespace:
           {"t":"<marker>","id":"<id>","b":"<batch>","c":"<checksum>"}
    2. UTF-8 bytes → standard base64 (RFC 4648 alphabet, with padding)

Decoding is a syntactic check only. It proves the token is shaped like
a claim; authenticity comes from the ledger match, never from here.

Failure Modes (all returned as DecodeFailure, never raised):
    - not a string / longer than max_token_length
    - not valid base64, or not UTF-8 underneath
    - not valid JSON, or JSON that is not an object
    - marker key missing or wrong
    - claim fields missing, extra keys present, non-string values
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from redsteep.config import DEFAULT_MARKER, RedsteepConfig
from redsteep.schemas.claim import Claim, DecodeError, DecodeFailure, DecodeResult
from redsteep.utils import redact_token

logger = logging.getLogger("redsteep.codec.token")

MARKER_KEY = "t"
CLAIM_KEYS = ("id", "b", "c")
WIRE_KEYS = frozenset((MARKER_KEY, *CLAIM_KEYS))


class HasIdentity(Protocol):
    id: str
    batch: str
    checksum: str


class TokenCodec:
    """
    Encoder/decoder for claim tokens.

    Usage:
        codec = TokenCodec(marker="REDSTEEP-DEMO")
        token = codec.encode(record)
        result = codec.decode(token)
        if isinstance(result, Claim):
            ...

    Args:
        marker: Protocol marker written by encode and required by decode.
        max_token_length: Inputs longer than this are rejected unparsed.
    """

    def __init__(self, marker: str = DEFAULT_MARKER, max_token_length: int = 4096):
        if not marker:
            raise ValueError("marker must be a non-empty string")
        if max_token_length <= 0:
            raise ValueError(f"max_token_length must be positive, got {max_token_length}")
        self.marker = marker
        self.max_token_length = max_token_length

    @classmethod
    def from_config(cls, config: RedsteepConfig) -> "TokenCodec":
        """Create a TokenCodec from Redsteep config."""
        return cls(
            marker=config.token.marker,
            max_token_length=config.token.max_token_length,
        )

    # ── Encode ─────────────────────────────────────────────────────

    def encode(self, record: HasIdentity) -> str:
        """
        Serialize the identity fields of a record (or claim) into a token.

        Deterministic: identical input always yields the identical string.
        """
        payload = {
            MARKER_KEY: self.marker,
            "id": record.id,
            "b": record.batch,
            "c": record.checksum,
        }
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    # ── Decode ─────────────────────────────────────────────────────

    def decode(self, token: Any) -> DecodeResult:
        """
        Parse a token back into a Claim.

        Returns:
            A Claim when every check passes, otherwise a DecodeFailure.
        """
        if not isinstance(token, str):
            return self._fail(DecodeError.NOT_A_STRING, f"got {type(token).__name__}")
        if len(token) > self.max_token_length:
            return self._fail(
                DecodeError.TOO_LONG,
                f"{len(token)} chars > max_token_length={self.max_token_length}",
            )

        text = self._unwrap(token)
        if text is None:
            return self._fail(DecodeError.BAD_ENCODING, "not base64-encoded UTF-8", token)

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            return self._fail(DecodeError.BAD_JSON, str(e) or type(e).__name__, token)

        if not isinstance(data, dict):
            return self._fail(
                DecodeError.NOT_A_MAPPING, f"payload is a {type(data).__name__}", token
            )

        if data.get(MARKER_KEY) != self.marker:
            return self._fail(DecodeError.BAD_MARKER, "protocol marker missing or wrong", token)

        missing = [k for k in CLAIM_KEYS if k not in data]
        if missing:
            return self._fail(DecodeError.MISSING_FIELDS, f"missing {missing}", token)

        extra = sorted(set(data) - WIRE_KEYS)
        if extra:
            return self._fail(DecodeError.UNEXPECTED_FIELDS, f"unexpected {extra}", token)

        try:
            return Claim.model_validate(data)
        except ValidationError as e:
            return self._fail(
                DecodeError.BAD_FIELD_TYPE, f"{e.error_count()} invalid field(s)", token
            )

    @staticmethod
    def _unwrap(token: str) -> Optional[str]:
        """Undo the base64 layer; None when the envelope is not valid."""
        try:
            raw = base64.b64decode(token, validate=True)
            return raw.decode("utf-8")
        except (binascii.Error, ValueError):
            # UnicodeDecodeError is a ValueError
            return None

    @staticmethod
    def _fail(error: DecodeError, detail: str, token: str = "") -> DecodeFailure:
        logger.debug(f"Decode failed ({error.value}): {detail} [{redact_token(token)}]")
        return DecodeFailure(error=error, detail=detail)


# ── Module-level helpers (default marker) ──────────────────────────

_default_codec = TokenCodec()


def encode_token(record: HasIdentity) -> str:
    """Encode with the default protocol marker."""
    return _default_codec.encode(record)


def decode_token(token: Any) -> DecodeResult:
    """Decode with the default protocol marker."""
    return _default_codec.decode(token)
