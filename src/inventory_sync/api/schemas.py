"""Pydantic request/response schemas for the Inventory Sync API."""

from datetime import datetime

from pydantic import BaseModel, Field

from inventory_sync.core.models import (
    AlertKind,
    InventoryRecord,
    InventoryStats,
    NoticeLevel,
    SchedulerState,
)
from inventory_sync.core.notifications import Notice


# Request models


class ViewRequest(BaseModel):
    """Request body for changing the search query and category filter."""

    query: str = Field(default="", description="Free-text search over name and category")
    category: str | None = Field(default=None, description="Exact category, or null for all")


# Response models


class InventoryItemResponse(BaseModel):
    """Response for an inventory record."""

    id: int
    name: str
    category: str
    unit: str
    quantity: float
    min_quantity: float
    price: float
    last_updated: datetime | None
    needs_setup: bool
    low_stock: bool
    out_of_stock: bool

    @classmethod
    def from_record(cls, record: InventoryRecord) -> "InventoryItemResponse":
        return cls(
            id=record.id,
            name=record.name,
            category=record.category,
            unit=record.unit,
            quantity=record.quantity,
            min_quantity=record.min_quantity,
            price=record.price,
            last_updated=record.last_updated,
            needs_setup=record.is_placeholder,
            low_stock=record.is_low_stock,
            out_of_stock=record.is_out_of_stock,
        )


class InventoryListResponse(BaseModel):
    """Response for the visible inventory rows."""

    items: list[InventoryItemResponse]
    total_items: int
    query: str
    category: str | None
    categories: list[str]
    loading: bool
    needs_setup: bool


class StatsResponse(InventoryStats):
    """Response for the stat tiles."""


class RefreshStateResponse(BaseModel):
    """Response describing the automatic refresh loop."""

    state: SchedulerState
    enabled: bool
    locked: bool
    needs_setup: bool
    interval_seconds: float
    status_message: str


class NoticeResponse(BaseModel):
    """A notice for the toast surface."""

    level: NoticeLevel
    message: str
    created_ts: datetime
    record_id: int | None = None
    alert_kind: AlertKind | None = None

    @classmethod
    def from_notice(cls, notice: Notice) -> "NoticeResponse":
        return cls(
            level=notice.level,
            message=notice.message,
            created_ts=notice.created_ts,
            record_id=notice.alert.record_id if notice.alert else None,
            alert_kind=notice.alert.kind if notice.alert else None,
        )


class NoticeListResponse(BaseModel):
    """Response for drained notices."""

    notices: list[NoticeResponse]


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    scheduler: SchedulerState
