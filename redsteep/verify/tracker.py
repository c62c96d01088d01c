"""
Duplicate Tracker
==================

Detects repeat presentations of the same claim identity within the
lifetime of a process.

Design Decisions:
    - The SeenSet is an explicitly owned object, not a module global;
      callers that need isolation (per tenant, per test) build their own
    - It only grows: no eviction, no persistence across restarts
    - check-and-record is one atomic step under a lock, so N concurrent
      first presentations of a claim yield exactly one "not seen"
    - Keys are the JSON array encoding of (id, batch, checksum), which
      escapes any character a field could contain

The orchestrator only records claims that matched the ledger, so forged
or garbage tokens never enter the set.
"""

from __future__ import annotations

import json
import logging
import threading

from redsteep.schemas.claim import Claim

logger = logging.getLogger("redsteep.verify.tracker")


def identity_key(id: str, batch: str, checksum: str) -> str:
    """Unambiguous string key for an identity triple."""
    return json.dumps([id, batch, checksum], ensure_ascii=False, separators=(",", ":"))


class SeenSet:
    """
    Thread-safe, grow-only set of identity keys.

    Usage:
        seen = SeenSet()
        seen.add_if_absent(key)   # True the first time, False after
    """

    def __init__(self):
        self._keys: set[str] = set()
        self._lock = threading.Lock()

    def add_if_absent(self, key: str) -> bool:
        """
        Insert `key` unless present.

        Returns:
            True if the key was inserted, False if it was already there.
        """
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class DuplicateTracker:
    """
    Duplicate-presentation detector over a SeenSet.

    Args:
        seen: Backing set; a fresh one is created when omitted.
    """

    def __init__(self, seen: SeenSet | None = None):
        self.seen = seen if seen is not None else SeenSet()

    def check_and_record(self, claim: Claim) -> bool:
        """
        Record a presentation of `claim`.

        Returns:
            True if this identity was already seen (a duplicate),
            False if this is its first presentation.
        """
        was_seen = not self.seen.add_if_absent(identity_key(*claim.identity))
        if was_seen:
            logger.warning(f"Duplicate presentation of {claim.id}/{claim.batch}")
        return was_seen

    def has_seen(self, claim: Claim) -> bool:
        """Read-only membership check."""
        return identity_key(*claim.identity) in self.seen
