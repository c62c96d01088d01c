"""
Rule Evaluator
===============

Applies the recall/expiry business rules to a matched ledger record at
a caller-supplied instant. The clock is never read here.

RULES (in precedence order):
    1. status == recalled                     → INVALID_RECALLED
    2. local date of `now` is after `exp`     → INVALID_EXPIRED
    3. otherwise                              → VALID

Timezone Policy:
    Expiry dates are calendar dates in the configured zone (UTC by
    default). A product stays valid through the entire expiry day, so
    for exp = 2027-08-31:
        2027-08-31T23:59:59  → VALID
        2027-09-01T00:00:00  → INVALID_EXPIRED

    - naive datetimes are read as wall-clock time in the configured zone
    - aware datetimes are converted to the configured zone first
    - plain dates are used as-is

This module contains no I/O and no shared state; any number of
threads may call evaluate() at once.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from redsteep.config import RedsteepConfig
from redsteep.schemas.outcome import RuleVerdict
from redsteep.schemas.record import BatchRecord

logger = logging.getLogger("redsteep.rules.evaluator")


class RuleEvaluator:
    """
    Deterministic recall/expiry policy.

    Usage:
        evaluator = RuleEvaluator(timezone="UTC")
        verdict = evaluator.evaluate(record, now)

    Args:
        timezone: IANA zone name for expiry boundaries.

    Raises:
        ValueError: if the zone name is unknown.
    """

    def __init__(self, timezone: str = "UTC"):
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {timezone!r}") from e
        self.timezone = timezone

    @classmethod
    def from_config(cls, config: RedsteepConfig) -> "RuleEvaluator":
        """Create a RuleEvaluator from Redsteep config."""
        return cls(timezone=config.rules.timezone)

    def local_date(self, now: datetime | date) -> date:
        """Calendar date of `now` under this evaluator's timezone policy."""
        if isinstance(now, datetime):
            if now.tzinfo is None:
                return now.date()
            return now.astimezone(self.tz).date()
        return now

    def is_expired(self, record: BatchRecord, now: datetime | date) -> bool:
        """True once the whole expiry day has passed."""
        return self.local_date(now) > record.exp

    def evaluate(self, record: BatchRecord, now: datetime | date) -> RuleVerdict:
        """
        Judge a matched record as of `now`.

        Recall takes precedence over expiry.
        """
        if record.is_recalled:
            verdict = RuleVerdict.INVALID_RECALLED
        elif self.is_expired(record, now):
            verdict = RuleVerdict.INVALID_EXPIRED
        else:
            verdict = RuleVerdict.VALID

        logger.debug(
            f"Rules for {record.id}/{record.batch}: {verdict.value} "
            f"(exp={record.exp}, now={now}, tz={self.timezone})"
        )
        return verdict
