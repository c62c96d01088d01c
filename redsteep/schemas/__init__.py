"""
Redsteep Data Schemas
======================

Pydantic v2 models for the three data contracts of the engine:

1. BatchRecord          — Authoritative ledger entry
2. Claim / DecodeFailure — What a token decodes to
3. VerificationOutcome  — Result of one verify() call

All schemas support:
- Runtime validation with Pydantic
- JSON Schema export for interoperability
"""

from redsteep.schemas.record import (
    BatchRecord,
    RecordStatus,
)
from redsteep.schemas.claim import (
    Claim,
    DecodeError,
    DecodeFailure,
    DecodeResult,
)
from redsteep.schemas.outcome import (
    ReasonCode,
    RuleVerdict,
    VerificationOutcome,
)

__all__ = [
    # Ledger
    "BatchRecord",
    "RecordStatus",
    # Claim
    "Claim",
    "DecodeError",
    "DecodeFailure",
    "DecodeResult",
    # Outcome
    "ReasonCode",
    "RuleVerdict",
    "VerificationOutcome",
]
