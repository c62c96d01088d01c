"""
Redsteep Test Configuration
============================

Shared fixtures, factories, and helpers for the entire test suite.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import date
from typing import Any

import pytest

from redsteep.codec.token import TokenCodec
from redsteep.ledger.index import LedgerIndex
from redsteep.ledger.loader import load_demo_ledger
from redsteep.pipeline import VerificationPipeline
from redsteep.rules.evaluator import RuleEvaluator
from redsteep.schemas.record import BatchRecord, RecordStatus
from redsteep.verify.tracker import DuplicateTracker


# ── Markers ─────────────────────────────────────────────────────

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line("markers", "integration: multi-component tests")
    config.addinivalue_line("markers", "adversarial: adversarial robustness tests")


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers the CLI attaches so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("redsteep")
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def scenario_record() -> BatchRecord:
    """The MED-001 record used by the end-to-end scenario."""
    return make_record()


@pytest.fixture
def recalled_record() -> BatchRecord:
    """A recalled record whose expiry has also passed by 2028."""
    return make_record(
        id="MED-004", batch="I220015", checksum="c0de",
        exp=date(2027, 6, 17), status=RecordStatus.RECALLED,
    )


@pytest.fixture
def demo_records() -> list[BatchRecord]:
    """The bundled four-record demo ledger."""
    return load_demo_ledger()


@pytest.fixture
def ledger(demo_records) -> LedgerIndex:
    return LedgerIndex(demo_records)


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec()


@pytest.fixture
def evaluator() -> RuleEvaluator:
    return RuleEvaluator(timezone="UTC")


@pytest.fixture
def pipeline(ledger) -> VerificationPipeline:
    """Pipeline over the demo ledger with its own fresh seen-set."""
    return VerificationPipeline(ledger, tracker=DuplicateTracker())


# ── Factories ───────────────────────────────────────────────────

def make_record(
    id: str = "MED-001",
    batch: str = "B456789",
    checksum: str = "f9a2",
    mfg: date = date(2025, 9, 1),
    exp: date = date(2027, 8, 31),
    status: RecordStatus = RecordStatus.ACTIVE,
    name: str = "Paracetamol 500mg (10 tabs)",
) -> BatchRecord:
    """Factory for creating test ledger records."""
    return BatchRecord(
        id=id,
        batch=batch,
        checksum=checksum,
        name=name,
        manufacturer="XYZ Pharma Pvt Ltd",
        supplier="Sunrise Distributors",
        shop="Sahil Medicals (Chembur)",
        mfg=mfg,
        exp=exp,
        status=status,
    )


def make_raw_token(payload: Any) -> str:
    """Base64-wrap an arbitrary JSON payload, bypassing the encoder."""
    text = json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
