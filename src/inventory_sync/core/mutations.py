"""Serialized writes against the remote service with scheduler isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from inventory_sync.client.remote import InventoryClient, RemoteError
from inventory_sync.core.models import InventoryCreate, InventoryRecord, InventoryUpdate
from inventory_sync.core.notifications import NotificationCenter
from inventory_sync.core.scheduler import RefreshScheduler

logger = structlog.get_logger()

T = TypeVar("T")

Reload = Callable[[], Awaitable[bool]]

# operation -> (success message, failure message)
MESSAGES = {
    "create": ("Added a new item.", "Could not add the item. Please try again shortly."),
    "update": ("Updated the item.", "Could not update the item. Please try again shortly."),
    "delete": ("Deleted the item.", "Could not delete the item. Please try again."),
}


class MutationError(Exception):
    """Raised when a create, update or delete is rejected or fails."""

    def __init__(self, operation: str, cause: RemoteError):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class MutationCoordinator:
    """Runs one write at a time and resynchronizes the snapshot afterwards.

    The scheduler is suspended for the whole write-then-reload sequence
    so a scheduled refresh cannot report alerts against pre-write data.
    """

    def __init__(
        self,
        client: InventoryClient,
        scheduler: RefreshScheduler,
        notifications: NotificationCenter,
        reload: Reload,
    ):
        """Initialize the coordinator.

        Args:
            client: Remote inventory client
            scheduler: Scheduler to suspend while a write is in flight
            notifications: Where outcomes are reported
            reload: Full snapshot reload, run after every write
        """
        self._client = client
        self._scheduler = scheduler
        self._notifications = notifications
        self._reload = reload
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    async def create(self, fields: InventoryCreate) -> InventoryRecord:
        return await self._mutate("create", lambda: self._client.create_inventory(fields))

    async def update(self, record_id: int, patch: InventoryUpdate) -> InventoryRecord:
        return await self._mutate(
            "update", lambda: self._client.update_inventory(record_id, patch), record_id=record_id
        )

    async def delete(self, record_id: int) -> None:
        await self._mutate(
            "delete", lambda: self._client.delete_inventory(record_id), record_id=record_id
        )

    async def _mutate(
        self, operation: str, call: Callable[[], Awaitable[T]], record_id: int | None = None
    ) -> T:
        success_message, failure_message = MESSAGES[operation]
        async with self._lock:
            was_enabled = self._scheduler.suspend()
            try:
                try:
                    result = await call()
                except RemoteError as e:
                    logger.error(
                        "inventory_mutation_failed",
                        operation=operation,
                        record_id=record_id,
                        error=str(e),
                    )
                    self._notifications.error(failure_message)
                    await self._reload()
                    raise MutationError(operation, e) from e

                logger.info("inventory_mutation_applied", operation=operation, record_id=record_id)
                self._notifications.success(success_message)
                await self._reload()
                return result
            finally:
                self._scheduler.restore(was_enabled)
