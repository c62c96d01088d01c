"""
Batch Record Schema
====================

One product batch as it appears on the reference ledger.

Design Decisions:
    - Records are frozen: the engine reads the ledger, it never edits it
    - (id, batch, checksum) is the identity triple used for matching
    - Dates are calendar dates; the timezone policy lives in the rules

Data Flow:
    Ledger source → BatchRecord → LedgerIndex → Rule Evaluator
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RecordStatus(str, Enum):
    """
    Lifecycle status of a batch on the ledger.

    - ACTIVE:   Batch is in circulation
    - RECALLED: Manufacturer has recalled the batch; never valid
    """
    ACTIVE = "active"
    RECALLED = "recalled"


class BatchRecord(BaseModel):
    """
    An authoritative ledger entry for one product batch.

    Schema:
        {
          "id": "MED-001",
          "batch": "B456789",
          "name": "Paracetamol 500mg (10 tabs)",
          "manufacturer": "XYZ Pharma Pvt Ltd",
          "supplier": "Sunrise Distributors",
          "shop": "Sahil Medicals (Chembur)",
          "mfg": "2025-09-01",
          "exp": "2027-08-31",
          "checksum": "f9a2",
          "status": "active"
        }
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Product identifier")
    batch: str = Field(min_length=1, description="Lot code, unique per product id")
    name: str = Field(default="", description="Display name")
    manufacturer: str = Field(default="", description="Manufacturer display name")
    supplier: str = Field(default="", description="Supplier display name")
    shop: str = Field(default="", description="Retail shop display name")
    mfg: date = Field(description="Manufacture date")
    exp: date = Field(description="Expiry date (valid through the whole day)")
    checksum: str = Field(
        min_length=1,
        description="Short signature fragment bound to id + batch",
    )
    status: RecordStatus = Field(default=RecordStatus.ACTIVE, description="Ledger status")

    @model_validator(mode="after")
    def validate_dates(self) -> "BatchRecord":
        """A batch cannot expire before it was manufactured."""
        if self.exp < self.mfg:
            raise ValueError(f"exp ({self.exp}) is before mfg ({self.mfg})")
        return self

    @property
    def identity(self) -> tuple[str, str, str]:
        """The (id, batch, checksum) triple used for matching."""
        return (self.id, self.batch, self.checksum)

    @property
    def is_recalled(self) -> bool:
        return self.status == RecordStatus.RECALLED
