"""
Verification Outcome Schema
============================

Defines what a single ``verify(token, now)`` call returns: an accept/
reject flag, the reason for a rejection, the matched ledger record
(when there was one), and the advisory duplicate flag.

Design Decisions:
    - Every failure is data, never an exception (untrusted input)
    - Rule failures still surface the matched record and duplicate flag
    - Decode / no-match failures carry nothing (nothing trustworthy to show)
    - Duplicate is metadata, never a rejection reason

State machine of one call:
    START → DECODED | REJECTED(INVALID_TOKEN)
          → MATCHED | REJECTED(NO_MATCH)
          → RULED(VALID | INVALID_RECALLED | INVALID_EXPIRED) → DONE
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from redsteep.schemas.record import BatchRecord


class RuleVerdict(str, Enum):
    """
    Outcome of the recall/expiry business rules on a matched record.

    Recall takes precedence over expiry.
    """
    VALID = "VALID"
    INVALID_RECALLED = "INVALID_RECALLED"
    INVALID_EXPIRED = "INVALID_EXPIRED"


class ReasonCode(str, Enum):
    """
    Why a verification was rejected.

    - INVALID_TOKEN:    Malformed envelope, bad JSON, wrong marker, missing fields
    - NO_MATCH:         Well-formed claim with no identity match (counterfeit?)
    - INVALID_RECALLED: Matched record has been recalled
    - INVALID_EXPIRED:  Matched record's expiry day has passed
    """
    INVALID_TOKEN = "INVALID_TOKEN"
    NO_MATCH = "NO_MATCH"
    INVALID_RECALLED = "INVALID_RECALLED"
    INVALID_EXPIRED = "INVALID_EXPIRED"

    @classmethod
    def from_verdict(cls, verdict: RuleVerdict) -> "ReasonCode":
        """Map a failing rule verdict onto its reason code."""
        if verdict == RuleVerdict.VALID:
            raise ValueError("VALID verdict has no reason code")
        return cls(verdict.value)

    @property
    def message(self) -> str:
        """Display text for the scanning terminal."""
        return _REASON_MESSAGES[self]

    @property
    def exposes_record(self) -> bool:
        """Whether a rejection with this code still carries the matched record."""
        return self in (ReasonCode.INVALID_RECALLED, ReasonCode.INVALID_EXPIRED)


_REASON_MESSAGES = {
    ReasonCode.INVALID_TOKEN: "Invalid or corrupted QR payload.",
    ReasonCode.NO_MATCH: "No matching batch on ledger (possible counterfeit).",
    ReasonCode.INVALID_RECALLED: "Batch is recalled by manufacturer.",
    ReasonCode.INVALID_EXPIRED: "Medicine is expired.",
}


class VerificationOutcome(BaseModel):
    """
    Result of one verification attempt.

    Schema:
        {
          "ok": false,
          "reason_code": "INVALID_EXPIRED",
          "record": {"id": "MED-001", "batch": "B456789", ...},
          "duplicate": true
        }
    """
    model_config = ConfigDict(frozen=True)

    ok: bool = Field(description="True iff the token is authentic and currently valid")
    reason_code: Optional[ReasonCode] = Field(
        default=None,
        description="Rejection reason (absent when ok)",
    )
    record: Optional[BatchRecord] = Field(
        default=None,
        description="Matched ledger record (present whenever a match was found)",
    )
    duplicate: bool = Field(
        default=False,
        description="True if this claim identity was presented before",
    )

    @model_validator(mode="after")
    def validate_consistency(self) -> "VerificationOutcome":
        """Keep ok / reason_code / record coherent with the state machine."""
        if self.ok:
            if self.reason_code is not None:
                raise ValueError("accepted outcome cannot carry a reason_code")
            if self.record is None:
                raise ValueError("accepted outcome must carry the matched record")
            return self

        if self.reason_code is None:
            raise ValueError("rejected outcome requires a reason_code")
        if self.reason_code.exposes_record:
            if self.record is None:
                raise ValueError(f"{self.reason_code.value} outcome must carry the matched record")
        elif self.record is not None or self.duplicate:
            raise ValueError(
                f"{self.reason_code.value} outcome cannot carry a record or duplicate flag"
            )
        return self

    # ── Constructors ───────────────────────────────────────────────

    @classmethod
    def rejected(cls, reason: ReasonCode) -> "VerificationOutcome":
        """Rejection before any ledger match (INVALID_TOKEN / NO_MATCH)."""
        return cls(ok=False, reason_code=reason)

    @classmethod
    def ruled(
        cls, verdict: RuleVerdict, record: BatchRecord, duplicate: bool
    ) -> "VerificationOutcome":
        """Outcome for a matched record once the rules have run."""
        if verdict == RuleVerdict.VALID:
            return cls(ok=True, record=record, duplicate=duplicate)
        return cls(
            ok=False,
            reason_code=ReasonCode.from_verdict(verdict),
            record=record,
            duplicate=duplicate,
        )

    @property
    def message(self) -> str:
        """Display text for this outcome."""
        if self.ok:
            return "Authentic batch."
        return self.reason_code.message
