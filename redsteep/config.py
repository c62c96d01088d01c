"""
Redsteep Configuration System
==============================

Central configuration using Pydantic Settings. Supports:
- Environment variables (REDSTEEP_ prefix)
- .env file loading
- YAML config file overrides

The config produces a deterministic hash so that two terminals can
confirm they run with the same marker, timezone and ledger source.

Usage:
    from redsteep.config import get_config
    cfg = get_config()                        # loads from env / .env
    cfg = get_config("configs/clinic.yaml")   # loads with YAML overrides
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from redsteep.utils import compute_hash


DEFAULT_MARKER = "REDSTEEP-DEMO"


# ── Sub-configs ────────────────────────────────────────────────────
class TokenConfig(BaseModel):
    """Configuration for the token codec."""
    marker: str = Field(
        default=DEFAULT_MARKER,
        min_length=1,
        description="Protocol marker agreed between encoder and decoder deployments",
    )
    max_token_length: int = Field(
        default=4096,
        gt=0,
        description="Tokens longer than this are rejected without decoding",
    )


class LedgerConfig(BaseModel):
    """Configuration for the ledger data source."""
    path: Optional[Path] = Field(
        default=None,
        description="JSON/YAML ledger file; the bundled demo ledger is used when unset",
    )


class RuleConfig(BaseModel):
    """Configuration for the recall/expiry rules."""
    timezone: str = Field(
        default="UTC",
        description="IANA zone in which expiry dates and naive timestamps are read",
    )


class VerificationConfig(BaseModel):
    """Configuration for the verification orchestrator."""
    max_workers: int = Field(default=4, ge=1, description="Thread pool size for verify_many")


# ── Main Config ────────────────────────────────────────────────────
class RedsteepConfig(BaseSettings):
    """
    Root configuration for Redsteep.

    Loads from environment variables (REDSTEEP_ prefix) and .env file.
    Nested values use a double underscore delimiter.

    Example:
        export REDSTEEP_RULES__TIMEZONE=Asia/Kolkata
        export REDSTEEP_LEDGER__PATH=/srv/ledger.json
    """
    model_config = SettingsConfigDict(
        env_prefix="REDSTEEP_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: 'json' or 'text'")

    token: TokenConfig = Field(default_factory=TokenConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    rules: RuleConfig = Field(default_factory=RuleConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)

    def config_hash(self) -> str:
        """Deterministic truncated SHA-256 of the canonical configuration."""
        return compute_hash(self.model_dump(mode="json"))


# ── Config Loading ─────────────────────────────────────────────────
def get_config(yaml_path: Optional[str] = None) -> RedsteepConfig:
    """
    Load Redsteep configuration.

    Priority (highest to lowest):
        1. YAML config file (if provided)
        2. Environment variables (REDSTEEP_ prefix)
        3. .env file
        4. Default values

    Args:
        yaml_path: Optional path to a YAML config file for overrides.

    Returns:
        Fully resolved RedsteepConfig instance.
    """
    if yaml_path:
        import yaml
        with open(yaml_path, encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}
        return RedsteepConfig(**overrides)
    return RedsteepConfig()
