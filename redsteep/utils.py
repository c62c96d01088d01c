"""
Redsteep Utilities
===================

Shared helpers for logging, hashing, and JSON file I/O.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Any


def generate_run_id() -> str:
    """
    Generate a unique run ID for tagging log output.

    Format: redsteep-{timestamp}-{short_uuid}
    """
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    short_id = uuid.uuid4().hex[:8]
    return f"redsteep-{timestamp}-{short_id}"


# ── Hashing ────────────────────────────────────────────────────────

def compute_hash(data: str | bytes | dict, length: int = 16) -> str:
    """
    Compute a truncated SHA-256 hash.

    Args:
        data: String, bytes, or dict to hash.
        length: Number of hex characters to return (max 64).
    """
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, default=str)
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()[:length]


def redact_token(token: str, keep: int = 12) -> str:
    """Shorten a token for log lines; full scanned payloads are never logged."""
    if len(token) <= keep:
        return token
    return f"{token[:keep]}…({len(token)} chars)"


# ── Logging ────────────────────────────────────────────────────────

class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, keyed by the emitting ``redsteep.<area>`` logger."""

    def __init__(self, run_id: str | None = None):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if self.run_id:
            entry["run_id"] = self.run_id
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    format_style: str = "text",
    run_id: str | None = None,
    stream=None,
) -> logging.Logger:
    """
    Configure the ``redsteep`` logger tree.

    Logs go to stderr by default so that command output on stdout (for
    example ``verify --json``) stays machine-readable. Calling this again
    replaces the previous handler.

    Args:
        level: Log level name; unknown names fall back to INFO.
        format_style: "json" for one object per line, anything else for text.
        run_id: Optional run ID stamped on every entry.
        stream: Override the output stream (defaults to sys.stderr).
    """
    logger = logging.getLogger("redsteep")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if format_style == "json":
        handler.setFormatter(JsonLogFormatter(run_id))
    else:
        tag = f"{run_id} | " if run_id else ""
        handler.setFormatter(logging.Formatter(
            f"%(asctime)s | %(levelname)-7s | {tag}%(name)s | %(message)s",
            datefmt="%H:%M:%S",
        ))

    logger.addHandler(handler)
    return logger


# ── File I/O Helpers ───────────────────────────────────────────────

def load_json(path: str | Path) -> Any:
    """Load a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
