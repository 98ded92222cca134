"""HTTP client for the remote inventory service."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from inventory_sync.config import RemoteSettings, get_settings
from inventory_sync.core.models import (
    InventoryCreate,
    InventoryRecord,
    InventoryStats,
    InventoryUpdate,
)

logger = structlog.get_logger()

_records_adapter = TypeAdapter(list[InventoryRecord])


class RemoteError(Exception):
    """Raised when a call to the remote inventory service fails."""

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.status_code = status_code


class InventoryClient:
    """Async gateway to the remote inventory service."""

    def __init__(
        self,
        settings: RemoteSettings | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Remote service settings. If None, uses global settings.
            http: Preconfigured httpx client, mainly for tests. When given,
                the caller owns its lifecycle.
        """
        self._settings = settings or get_settings().remote
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=self._settings.base_url,
            headers=self._settings.headers,
            timeout=httpx.Timeout(self._settings.timeout_seconds),
        )

    async def __aenter__(self) -> "InventoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("remote_request_rejected", operation=operation, status=status)
            raise RemoteError(operation, f"server returned {status}", status) from e
        except httpx.HTTPError as e:
            logger.warning("remote_request_failed", operation=operation, error=str(e))
            raise RemoteError(operation, str(e) or type(e).__name__) from e
        return response

    @staticmethod
    def _decode(operation: str, response: httpx.Response, parse) -> Any:
        try:
            return parse(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteError(operation, f"invalid response payload: {e}") from e

    # Queries

    async def list_inventory(self, search: str | None = None) -> list[InventoryRecord]:
        """List inventory records, optionally filtered server-side."""
        params = {"search": search} if search else None
        response = await self._request("list_inventory", "GET", "/inventory", params=params)
        return self._decode("list_inventory", response, _records_adapter.validate_python)

    async def get_inventory_stats(self) -> InventoryStats:
        """Get aggregate inventory counters."""
        response = await self._request("get_inventory_stats", "GET", "/inventory/stats")
        return self._decode("get_inventory_stats", response, InventoryStats.model_validate)

    # Mutations

    async def create_inventory(self, fields: InventoryCreate) -> InventoryRecord:
        """Create a record. The server may normalize any field."""
        response = await self._request(
            "create_inventory", "POST", "/inventory", json=fields.model_dump()
        )
        return self._decode("create_inventory", response, InventoryRecord.model_validate)

    async def update_inventory(self, record_id: int, fields: InventoryUpdate) -> InventoryRecord:
        """Update a record with the set fields of the patch."""
        response = await self._request(
            "update_inventory", "PUT", f"/inventory/{record_id}", json=fields.payload()
        )
        return self._decode("update_inventory", response, InventoryRecord.model_validate)

    async def delete_inventory(self, record_id: int) -> None:
        """Delete a record."""
        await self._request("delete_inventory", "DELETE", f"/inventory/{record_id}")


# Global client instance
_client: InventoryClient | None = None


def get_client() -> InventoryClient:
    """Get the global inventory client instance."""
    global _client
    if _client is None:
        _client = InventoryClient()
    return _client
