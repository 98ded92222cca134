"""Read-side gateway producing full inventory snapshots."""

from __future__ import annotations

import structlog

from inventory_sync.client.remote import InventoryClient
from inventory_sync.core.models import InventoryStats, Snapshot

logger = structlog.get_logger()


def normalize_search(search: str | None) -> str | None:
    """Trim a search term, mapping blank input to no filter."""
    if search is None:
        return None
    return search.strip() or None


class RemoteFetcher:
    """Issues list and stats queries against the remote service."""

    def __init__(self, client: InventoryClient):
        self._client = client

    async def fetch_snapshot(self, search: str | None = None) -> Snapshot:
        """Fetch a full replacement snapshot.

        Raises:
            RemoteError: If the remote call fails
        """
        term = normalize_search(search)
        records = await self._client.list_inventory(term)
        logger.debug("snapshot_fetched", search=term, size=len(records))
        return tuple(records)

    async def fetch_stats(self) -> InventoryStats:
        """Fetch aggregate counters.

        Raises:
            RemoteError: If the remote call fails
        """
        return await self._client.get_inventory_stats()
