"""Shared fixtures for Inventory Sync tests."""

from __future__ import annotations

import asyncio

import pytest

from inventory_sync.client.remote import RemoteError
from inventory_sync.config import SyncSettings
from inventory_sync.core.models import (
    InventoryCreate,
    InventoryRecord,
    InventoryStats,
    InventoryUpdate,
)


def record(id: int, name: str = "Item", **fields) -> InventoryRecord:
    """Build a fully configured record unless fields say otherwise."""
    values = {
        "category": "Dairy",
        "unit": "L",
        "quantity": 10,
        "min_quantity": 5,
        "price": 1000,
    }
    values.update(fields)
    return InventoryRecord(id=id, name=name, **values)


class FakeInventoryClient:
    """In-memory stand-in for the remote inventory service.

    ``list_gate`` and ``write_gate`` hold calls until set, to control
    interleavings. ``fail_*`` flags make the next calls raise RemoteError.
    """

    def __init__(self, records=()):
        self.records: dict[int, InventoryRecord] = {r.id: r for r in records}
        self.calls: list[tuple] = []
        self.fail_list = False
        self.fail_stats = False
        self.fail_writes = False
        self.list_gate: asyncio.Event | None = None
        self.write_gate: asyncio.Event | None = None
        self._next_id = max(self.records, default=0) + 1

    def serve(self, records) -> None:
        """Replace the server-side state."""
        self.records = {r.id: r for r in records}
        self._next_id = max(self._next_id, max(self.records, default=0) + 1)

    async def list_inventory(self, search: str | None = None) -> list[InventoryRecord]:
        self.calls.append(("list", search))
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.fail_list:
            raise RemoteError("list_inventory", "connection refused")
        rows = list(self.records.values())
        if search:
            term = search.lower()
            rows = [r for r in rows if term in r.name.lower() or term in r.category.lower()]
        return rows

    async def get_inventory_stats(self) -> InventoryStats:
        self.calls.append(("stats",))
        if self.fail_stats:
            raise RemoteError("get_inventory_stats", "server returned 500", 500)
        return InventoryStats.from_snapshot(self.records.values())

    async def _write(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise RemoteError(operation, "server returned 500", 500)

    async def create_inventory(self, fields: InventoryCreate) -> InventoryRecord:
        await self._write("create", fields.name)
        created = InventoryRecord(id=self._next_id, **fields.model_dump())
        self._next_id += 1
        self.records[created.id] = created
        return created

    async def update_inventory(self, record_id: int, fields: InventoryUpdate) -> InventoryRecord:
        await self._write("update", record_id)
        if record_id not in self.records:
            raise RemoteError("update_inventory", "server returned 404", 404)
        updated = self.records[record_id].model_copy(update=fields.payload())
        self.records[record_id] = updated
        return updated

    async def delete_inventory(self, record_id: int) -> None:
        await self._write("delete", record_id)
        self.records.pop(record_id, None)


async def settle(rounds: int = 5) -> None:
    """Let pending tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def make_record():
    return record


@pytest.fixture
def fake():
    return FakeInventoryClient()


@pytest.fixture
def sync_settings():
    # Long interval: tests drive ticks by hand
    return SyncSettings(
        refresh_interval_seconds=3600,
        search_debounce_seconds=0.01,
        notification_history=50,
    )


@pytest.fixture
def settle_tasks():
    return settle
