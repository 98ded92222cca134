"""Remote inventory service gateway."""

from inventory_sync.client.remote import InventoryClient, RemoteError, get_client

__all__ = ["InventoryClient", "RemoteError", "get_client"]
