"""Domain models for Inventory Sync."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Sentinel the remote service uses for a category or unit that was never set
UNSET = "-"


class AlertKind(str, Enum):
    """Threshold crossed by a record between two snapshots."""

    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class SchedulerState(str, Enum):
    """State of the automatic refresh loop."""

    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    LOCKED = "LOCKED"


class NoticeLevel(str, Enum):
    """Severity of a user-facing notice."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class InventoryRecord(BaseModel):
    """One stock-keeping unit as returned by the remote service."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str = UNSET
    unit: str = UNSET
    quantity: float = Field(default=0, ge=0)
    min_quantity: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    last_updated: datetime | None = None

    @property
    def is_placeholder(self) -> bool:
        """Whether the record still needs its initial setup."""
        return (
            self.category == UNSET
            or self.unit == UNSET
            or (self.quantity == 0 and self.min_quantity == 0 and self.price == 0)
        )

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.quantity <= self.min_quantity

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity == 0


Snapshot = tuple[InventoryRecord, ...]


class InventoryStats(BaseModel):
    """Aggregate counters shown on the stat tiles."""

    total_items: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0

    @classmethod
    def from_snapshot(cls, records: Iterable[InventoryRecord]) -> "InventoryStats":
        """Derive counters locally when the remote stats are unavailable."""
        records = list(records)
        return cls(
            total_items=len(records),
            low_stock_count=sum(1 for r in records if r.is_low_stock),
            out_of_stock_count=sum(1 for r in records if r.is_out_of_stock),
        )


class InventoryCreate(BaseModel):
    """Fields for a new inventory record."""

    name: str = Field(..., min_length=1, description="Display name")
    category: str = Field(..., min_length=1, description="Category label")
    quantity: float = Field(default=0, ge=0)
    unit: str = ""
    min_quantity: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)


class InventoryUpdate(BaseModel):
    """Partial update for an existing record. Only set fields are sent."""

    name: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    quantity: float | None = Field(default=None, ge=0)
    unit: str | None = None
    min_quantity: float | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)

    def payload(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)
