"""
Ledger Loaders
===============

Reads the reference ledger from a trusted source at startup.

Supported sources:
    - JSON file: an array of records, or {"records": [...]}
    - YAML file (.yaml / .yml): same shapes
    - The bundled demo ledger (four medicine batches, one recalled)

Records are validated into BatchRecords here; a malformed trusted
source is a deployment error and raises pydantic's ValidationError.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from redsteep.schemas.record import BatchRecord
from redsteep.utils import load_json

logger = logging.getLogger("redsteep.ledger.loader")

DEMO_LEDGER = "demo_ledger.json"


def load_ledger(path: str | Path) -> list[BatchRecord]:
    """
    Load ledger records from a JSON or YAML file.

    Args:
        path: File path.

    Returns:
        Validated records in file order.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the document is not a list of records.
        pydantic.ValidationError: if a record is malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Ledger file not found: {path}")

    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    else:
        data = load_json(path)

    records = parse_records(data)
    logger.info(f"Loaded {len(records)} ledger records from {path}")
    return records


def load_demo_ledger() -> list[BatchRecord]:
    """Load the ledger fixture bundled with the package."""
    text = resources.files("redsteep.data").joinpath(DEMO_LEDGER).read_text(encoding="utf-8")
    return parse_records(json.loads(text))


def parse_records(data: Any) -> list[BatchRecord]:
    """Validate a decoded ledger document into BatchRecords."""
    if isinstance(data, dict) and "records" in data:
        data = data["records"]
    if not isinstance(data, list):
        raise ValueError(
            f"Ledger document must be a list of records, got {type(data).__name__}"
        )
    return [BatchRecord.model_validate(item) for item in data]
