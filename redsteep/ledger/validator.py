"""
Ledger & Token Validator
=========================

Validation for ledger documents and tokens, plus JSON Schema export of
the data contracts.

Unlike LedgerIndex construction (which raises), these functions collect
every problem they find and return them as messages, so an operator can
fix a ledger file in one pass.

Usage:
    from redsteep.ledger.validator import validate_ledger
    errors = validate_ledger(json.load(f))
    if errors:
        print("Validation failed:", errors)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from redsteep.codec.token import TokenCodec
from redsteep.schemas.claim import Claim, DecodeFailure
from redsteep.schemas.outcome import VerificationOutcome
from redsteep.schemas.record import BatchRecord

logger = logging.getLogger("redsteep.ledger.validator")

_SCHEMAS = {
    "record": BatchRecord,
    "claim": Claim,
    "outcome": VerificationOutcome,
}


def get_json_schema(schema_name: str) -> dict[str, Any]:
    """
    Export the JSON Schema for a Redsteep data contract.

    Args:
        schema_name: One of "record", "claim", "outcome".
    """
    if schema_name not in _SCHEMAS:
        raise ValueError(f"Unknown schema: {schema_name}. Use: {list(_SCHEMAS.keys())}")
    return _SCHEMAS[schema_name].model_json_schema()


def export_all_schemas(output_dir: str | Path) -> list[Path]:
    """
    Write one ``<name>_schema.json`` file per data contract.

    Returns:
        Paths of the written files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name in _SCHEMAS:
        path = output_dir / f"{name}_schema.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(get_json_schema(name), f, indent=2, ensure_ascii=False)
        logger.info(f"Exported schema: {path}")
        written.append(path)
    return written


def validate_ledger(data: Any) -> list[str]:
    """
    Validate a decoded ledger document.

    Checks:
        - document shape (list, or {"records": [...]})
        - every record against the BatchRecord schema (incl. exp >= mfg)
        - uniqueness of the (id, batch, checksum) identity triple
        - uniqueness of (id, batch), since a lot code is unique per product

    Returns:
        List of error messages (empty if valid).
    """
    errors: list[str] = []

    if isinstance(data, dict) and "records" in data:
        data = data["records"]
    if not isinstance(data, list):
        return [f"Ledger must be a list of records, got {type(data).__name__}"]

    seen_identity: dict[tuple[str, str, str], int] = {}
    seen_lot: dict[tuple[str, str], int] = {}
    for i, item in enumerate(data):
        try:
            record = BatchRecord.model_validate(item)
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(p) for p in err["loc"]) or "record"
                errors.append(f"Record {i}: {loc}: {err['msg']}")
            continue

        if record.identity in seen_identity:
            errors.append(
                f"Record {i}: duplicate identity ({record.id}, {record.batch}, "
                f"{record.checksum}) also at record {seen_identity[record.identity]}"
            )
        else:
            seen_identity[record.identity] = i

        lot = (record.id, record.batch)
        if lot in seen_lot:
            errors.append(
                f"Record {i}: batch {record.batch} of {record.id} "
                f"already listed at record {seen_lot[lot]}"
            )
        else:
            seen_lot[lot] = i

    return errors


def validate_token(token: Any, codec: TokenCodec | None = None) -> list[str]:
    """
    Syntactic token check (envelope, JSON, marker, fields).

    Says nothing about authenticity; only a ledger match does that.
    """
    result = (codec or TokenCodec()).decode(token)
    if isinstance(result, DecodeFailure):
        return [f"{result.error.value}: {result.detail}"]
    return []
