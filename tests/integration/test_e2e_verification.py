"""
End-to-End Verification Tests
==============================

Runs the full verify(token, now) contract over the demo ledger:
    - The MED-001 scenario (accept, duplicate, expire)
    - Every terminal state of the verification state machine
    - Rejections before a ledger match never touch the seen-set
    - Batch fan-out and construction from config
"""

from __future__ import annotations

import json
from datetime import date, datetime

import pytest

from redsteep.codec.token import TokenCodec
from redsteep.config import RedsteepConfig
from redsteep.ledger.index import LedgerIndex
from redsteep.pipeline import VerificationPipeline
from redsteep.schemas.outcome import ReasonCode
from redsteep.verify.tracker import DuplicateTracker

from tests.conftest import make_raw_token, make_record

pytestmark = pytest.mark.integration

NOW = date(2026, 1, 1)


def _token(pipeline, id, batch):
    return pipeline.encode(pipeline.ledger.get(id, batch))


class TestScenario:
    """The MED-001 walkthrough: accept, re-scan, scan after expiry."""

    def test_scenario(self, scenario_record):
        pipeline = VerificationPipeline(LedgerIndex([scenario_record]))
        token = pipeline.encode(scenario_record)

        first = pipeline.verify(token, now=NOW)
        assert first.ok is True
        assert first.duplicate is False
        assert first.record == scenario_record

        second = pipeline.verify(token, now=NOW)
        assert second.ok is True
        assert second.duplicate is True
        assert second.record == scenario_record

        third = pipeline.verify(token, now=date(2027, 9, 2))
        assert third.ok is False
        assert third.reason_code == ReasonCode.INVALID_EXPIRED
        assert third.duplicate is True
        assert third.record == scenario_record


class TestTerminalStates:

    def test_invalid_token(self, pipeline):
        outcome = pipeline.verify("%%% not a token %%%", NOW)
        assert not outcome.ok
        assert outcome.reason_code == ReasonCode.INVALID_TOKEN
        assert outcome.record is None
        assert outcome.duplicate is False

    def test_non_string_token(self, pipeline):
        assert pipeline.verify(None, NOW).reason_code == ReasonCode.INVALID_TOKEN
        assert pipeline.verify(12345, NOW).reason_code == ReasonCode.INVALID_TOKEN

    def test_no_match_for_tampered_checksum(self, pipeline):
        forged = TokenCodec().encode(make_record(checksum="beef"))
        outcome = pipeline.verify(forged, NOW)
        assert outcome.reason_code == ReasonCode.NO_MATCH
        assert outcome.record is None
        assert outcome.duplicate is False

    def test_no_match_for_unknown_batch(self, pipeline):
        forged = TokenCodec().encode(make_record(id="MED-999", batch="Z000000", checksum="0000"))
        assert pipeline.verify(forged, NOW).reason_code == ReasonCode.NO_MATCH

    def test_recalled(self, pipeline):
        outcome = pipeline.verify(_token(pipeline, "MED-004", "I220015"), NOW)
        assert outcome.reason_code == ReasonCode.INVALID_RECALLED
        assert outcome.record.id == "MED-004"
        assert outcome.duplicate is False
        assert outcome.message == "Batch is recalled by manufacturer."

    def test_recalled_and_expired_reports_recall(self, pipeline):
        outcome = pipeline.verify(_token(pipeline, "MED-004", "I220015"), date(2030, 1, 1))
        assert outcome.reason_code == ReasonCode.INVALID_RECALLED

    def test_expiry_boundary(self, pipeline):
        token = _token(pipeline, "MED-001", "B456789")
        assert pipeline.verify(token, datetime(2027, 8, 31, 23, 59, 59)).ok
        late = pipeline.verify(token, datetime(2027, 9, 1, 0, 0, 0))
        assert late.reason_code == ReasonCode.INVALID_EXPIRED

    def test_surrounding_whitespace_ignored(self, pipeline):
        token = _token(pipeline, "MED-002", "B984321")
        assert pipeline.verify(f"  {token}\n", NOW).ok

    def test_bad_clock_is_a_caller_error(self, pipeline):
        with pytest.raises(TypeError):
            pipeline.verify(_token(pipeline, "MED-001", "B456789"), "2026-01-01")


class TestSeenSetIsolation:
    """Only ledger-matched claims are ever recorded."""

    def test_invalid_tokens_do_not_grow_seen_set(self, pipeline):
        for junk in ("", "abc", make_raw_token({"t": "REDSTEEP-DEMO"})):
            pipeline.verify(junk, NOW)
        assert len(pipeline.tracker.seen) == 0

    def test_no_match_does_not_grow_seen_set(self, pipeline):
        forged = TokenCodec().encode(make_record(checksum="beef"))
        for _ in range(3):
            outcome = pipeline.verify(forged, NOW)
            assert outcome.duplicate is False
        assert len(pipeline.tracker.seen) == 0

    def test_rejections_do_not_affect_later_valid_claims(self, pipeline):
        pipeline.verify("garbage", NOW)
        pipeline.verify(TokenCodec().encode(make_record(checksum="beef")), NOW)
        outcome = pipeline.verify(_token(pipeline, "MED-003", "C772210"), NOW)
        assert outcome.ok and outcome.duplicate is False

    def test_rule_failures_are_recorded(self, pipeline):
        token = _token(pipeline, "MED-004", "I220015")
        assert pipeline.verify(token, NOW).duplicate is False
        assert pipeline.verify(token, NOW).duplicate is True

    def test_separate_trackers_isolate_tenants(self, ledger):
        token = TokenCodec().encode(ledger.get("MED-001", "B456789"))
        a = VerificationPipeline(ledger, tracker=DuplicateTracker())
        b = VerificationPipeline(ledger, tracker=DuplicateTracker())
        a.verify(token, NOW)
        assert b.verify(token, NOW).duplicate is False


class TestVerifyMany:

    def test_order_preserved(self, pipeline):
        tokens = [
            _token(pipeline, "MED-001", "B456789"),
            "garbage",
            _token(pipeline, "MED-004", "I220015"),
        ]
        outcomes = pipeline.verify_many(tokens, NOW)
        assert [o.reason_code for o in outcomes] == [
            None, ReasonCode.INVALID_TOKEN, ReasonCode.INVALID_RECALLED,
        ]

    def test_repeated_token_in_batch(self, pipeline):
        token = _token(pipeline, "MED-002", "B984321")
        outcomes = pipeline.verify_many([token] * 20, NOW, max_workers=8)
        assert all(o.ok for o in outcomes)
        assert [o.duplicate for o in outcomes].count(False) == 1

    def test_empty_batch(self, pipeline):
        assert pipeline.verify_many([], NOW) == []


class TestFromConfig:

    def test_demo_ledger_by_default(self):
        pipeline = VerificationPipeline.from_config(RedsteepConfig())
        assert len(pipeline.ledger) == 4
        assert pipeline.codec.marker == "REDSTEEP-DEMO"

    def test_configured_ledger_and_marker(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps([make_record(id="X-1").model_dump(mode="json")]))
        config = RedsteepConfig(ledger={"path": str(path)}, token={"marker": "CLINIC-7"})
        pipeline = VerificationPipeline.from_config(config)

        token = pipeline.encode(pipeline.ledger.get("X-1", "B456789"))
        assert pipeline.verify(token, NOW).ok
        # a token minted under the demo marker is not a claim here
        demo_token = TokenCodec().encode(make_record(id="X-1"))
        assert pipeline.verify(demo_token, NOW).reason_code == ReasonCode.INVALID_TOKEN
