"""
Ledger Index
=============

In-memory, read-only snapshot of the reference ledger, indexed by the
(id, batch, checksum) identity triple.

Design Decisions:
    - Matching is exact and case-sensitive on all three fields
    - A partial match (right id + batch, wrong checksum) is a miss;
      there is no "near match" state, it signals tamper/counterfeit
    - The index is built once and never mutated, so concurrent lookups
      need no locking
    - Duplicate identities, and repeated (id, batch) lots, are rejected at
      construction, so get() is unambiguous

Data Flow:
    Loader → [BatchRecord] → LedgerIndex → lookup(claim) → BatchRecord | None
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from redsteep.config import RedsteepConfig
from redsteep.schemas.claim import Claim
from redsteep.schemas.record import BatchRecord, RecordStatus

logger = logging.getLogger("redsteep.ledger.index")


class LedgerIndex:
    """
    Identity-keyed index over an ordered sequence of BatchRecords.

    Usage:
        ledger = LedgerIndex(load_demo_ledger())
        record = ledger.lookup(claim)      # None on any mismatch

    Args:
        records: Ledger snapshot; order is preserved for listing/search.

    Raises:
        ValueError: if two records share the same (id, batch, checksum),
            or the same (id, batch) lot with different checksums.
    """

    def __init__(self, records: Iterable[BatchRecord]):
        ordered = tuple(records)
        by_identity: dict[tuple[str, str, str], BatchRecord] = {}
        by_lot: dict[tuple[str, str], BatchRecord] = {}
        for record in ordered:
            if record.identity in by_identity:
                raise ValueError(
                    f"Duplicate ledger identity: id={record.id!r} "
                    f"batch={record.batch!r} checksum={record.checksum!r}"
                )
            lot = (record.id, record.batch)
            if lot in by_lot:
                raise ValueError(
                    f"Duplicate ledger lot: id={record.id!r} batch={record.batch!r} "
                    f"listed with checksums {by_lot[lot].checksum!r} and {record.checksum!r}"
                )
            by_identity[record.identity] = record
            by_lot[lot] = record

        self._records = ordered
        self._by_identity = MappingProxyType(by_identity)
        self._by_lot = MappingProxyType(by_lot)
        logger.info(f"Indexed ledger with {len(ordered)} records")

    @classmethod
    def from_config(cls, config: RedsteepConfig) -> "LedgerIndex":
        """Load the configured ledger source (or the demo ledger) and index it."""
        from redsteep.ledger.loader import load_demo_ledger, load_ledger

        if config.ledger.path is not None:
            return cls(load_ledger(config.ledger.path))
        return cls(load_demo_ledger())

    # ── Lookup ─────────────────────────────────────────────────────

    def lookup(self, claim: Claim) -> Optional[BatchRecord]:
        """
        Find the record whose identity triple exactly equals the claim's.

        Returns:
            The matching BatchRecord, or None.
        """
        return self._by_identity.get(claim.identity)

    def get(self, id: str, batch: str) -> Optional[BatchRecord]:
        """Ledger entry for a product id + lot code, regardless of checksum."""
        return self._by_lot.get((id, batch))

    def search(self, query: str = "", status: Optional[RecordStatus] = None) -> list[BatchRecord]:
        """
        Filter the ledger for listing.

        Args:
            query: Case-insensitive substring matched against name, id, or batch.
                Blank matches everything.
            status: Only records with this status, if given.

        Returns:
            Matching records in ledger order.
        """
        needle = query.strip().lower()
        results = []
        for record in self._records:
            if status is not None and record.status != status:
                continue
            if needle and not (
                needle in record.name.lower()
                or needle in record.id.lower()
                or needle in record.batch.lower()
            ):
                continue
            results.append(record)
        return results

    # ── Container protocol ─────────────────────────────────────────

    @property
    def records(self) -> tuple[BatchRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[BatchRecord]:
        return iter(self._records)

    def __contains__(self, claim: object) -> bool:
        return isinstance(claim, Claim) and claim.identity in self._by_identity
