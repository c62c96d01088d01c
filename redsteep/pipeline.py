"""
Redsteep Verification Pipeline
===============================

Composes the codec, ledger index, duplicate tracker and rule evaluator
into the single ``verify(token, now)`` contract.

Steps of one call:
    1. Decode the token           → INVALID_TOKEN on failure
    2. Look up the claim          → NO_MATCH on miss
    3. Record the presentation    → duplicate flag
    4. Apply recall/expiry rules  → VALID | INVALID_RECALLED | INVALID_EXPIRED
    5. Merge into a VerificationOutcome

Steps 1-2 never touch the duplicate tracker, so a flood of forged or
garbage tokens cannot grow the seen-set or disturb duplicate detection
for real batches. Nothing here raises on untrusted token input.

Usage:
    from redsteep.pipeline import VerificationPipeline

    pipeline = VerificationPipeline.from_config()
    outcome = pipeline.verify(token, now=datetime.now(timezone.utc))
    print(outcome.ok, outcome.reason_code, outcome.duplicate)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Any, Iterable, Optional

from redsteep.codec.token import TokenCodec
from redsteep.config import RedsteepConfig, get_config
from redsteep.ledger.index import LedgerIndex
from redsteep.rules.evaluator import RuleEvaluator
from redsteep.schemas.claim import DecodeFailure
from redsteep.schemas.outcome import ReasonCode, VerificationOutcome
from redsteep.utils import redact_token
from redsteep.verify.tracker import DuplicateTracker

logger = logging.getLogger("redsteep.pipeline")


class VerificationPipeline:
    """
    End-to-end verification orchestrator.

    Usage:
        pipeline = VerificationPipeline(LedgerIndex(records))
        outcome = pipeline.verify(token, now)

    Args:
        ledger: Indexed ledger snapshot.
        codec: Token codec (default marker when omitted).
        evaluator: Rule evaluator (UTC when omitted).
        tracker: Duplicate tracker; pass a shared one to pool detection
            across pipelines, or a fresh one for isolation.
        max_workers: Default thread pool size for verify_many().
    """

    def __init__(
        self,
        ledger: LedgerIndex,
        codec: Optional[TokenCodec] = None,
        evaluator: Optional[RuleEvaluator] = None,
        tracker: Optional[DuplicateTracker] = None,
        max_workers: int = 4,
    ):
        self.ledger = ledger
        self.codec = codec or TokenCodec()
        self.evaluator = evaluator or RuleEvaluator()
        self.tracker = tracker or DuplicateTracker()
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config: Optional[RedsteepConfig] = None) -> "VerificationPipeline":
        """Build every component from config (env / .env when omitted)."""
        config = config or get_config()
        return cls(
            ledger=LedgerIndex.from_config(config),
            codec=TokenCodec.from_config(config),
            evaluator=RuleEvaluator.from_config(config),
            max_workers=config.verification.max_workers,
        )

    def encode(self, record) -> str:
        """Token for a ledger record, using this pipeline's marker."""
        return self.codec.encode(record)

    def verify(self, token: Any, now: datetime | date) -> VerificationOutcome:
        """
        Verify one scanned token as of `now`.

        Args:
            token: Scanned string (untrusted; surrounding whitespace ignored).
            now: Evaluation instant, injected by the caller.

        Returns:
            VerificationOutcome. Rejections are returned, never raised.

        Raises:
            TypeError: if `now` is not a datetime or date (caller bug).
        """
        if not isinstance(now, date):
            raise TypeError(f"now must be a datetime or date, got {type(now).__name__}")

        if isinstance(token, str):
            token = token.strip()

        # ── 1. Decode ──────────────────────────────────────────────
        claim = self.codec.decode(token)
        if isinstance(claim, DecodeFailure):
            logger.warning(f"Rejected token ({claim.error.value}): {claim.detail}")
            return VerificationOutcome.rejected(ReasonCode.INVALID_TOKEN)

        # ── 2. Ledger match ────────────────────────────────────────
        record = self.ledger.lookup(claim)
        if record is None:
            logger.warning(
                f"No ledger match for {claim.id}/{claim.batch} "
                f"[{redact_token(token)}]"
            )
            return VerificationOutcome.rejected(ReasonCode.NO_MATCH)

        # ── 3. Duplicate presentation ──────────────────────────────
        duplicate = self.tracker.check_and_record(claim)

        # ── 4. Business rules ──────────────────────────────────────
        verdict = self.evaluator.evaluate(record, now)

        # ── 5. Outcome ─────────────────────────────────────────────
        outcome = VerificationOutcome.ruled(verdict, record, duplicate)
        if outcome.ok:
            logger.info(
                f"Verified {record.id}/{record.batch} (duplicate={duplicate})"
            )
        else:
            logger.warning(
                f"Rejected {record.id}/{record.batch}: {verdict.value} "
                f"(duplicate={duplicate})"
            )
        return outcome

    def verify_many(
        self,
        tokens: Iterable[Any],
        now: datetime | date,
        max_workers: Optional[int] = None,
    ) -> list[VerificationOutcome]:
        """
        Verify a batch of tokens concurrently.

        Outcomes are returned in input order. When the same token appears
        more than once, at most one of its outcomes has duplicate=False,
        though which one is not defined.
        """
        tokens = list(tokens)
        if not tokens:
            return []

        workers = max_workers or self.max_workers
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda t: self.verify(t, now), tokens))

        accepted = sum(1 for o in outcomes if o.ok)
        duplicates = sum(1 for o in outcomes if o.duplicate)
        logger.info(
            f"Batch verification: {accepted}/{len(outcomes)} accepted, "
            f"{duplicates} duplicate presentations"
        )
        return outcomes
