"""Inventory view state: snapshot, refresh loop, alerts and writes."""

from __future__ import annotations

import structlog

from inventory_sync.client.remote import InventoryClient, RemoteError, get_client
from inventory_sync.config import SyncSettings, get_settings
from inventory_sync.core.alerts import AlertEvent, diff
from inventory_sync.core.fetcher import RemoteFetcher
from inventory_sync.core.filters import Debouncer, categories, visible
from inventory_sync.core.guard import RefreshState, SetupGuard
from inventory_sync.core.models import (
    InventoryCreate,
    InventoryRecord,
    InventoryStats,
    InventoryUpdate,
    SchedulerState,
    Snapshot,
)
from inventory_sync.core.mutations import MutationCoordinator
from inventory_sync.core.notifications import NotificationCenter
from inventory_sync.core.scheduler import RefreshScheduler
from inventory_sync.core.snapshot import SnapshotStore

logger = structlog.get_logger()

LOAD_FAILED_MESSAGE = "Could not load the inventory. Please try again shortly."
REFRESHED_MESSAGE = "Inventory refreshed."


class InventorySync:
    """Owns everything one inventory view needs for its lifetime.

    Use it as an async context manager: entering performs the initial
    load and starts the refresh loop, leaving cancels the loop and any
    pending debounced search.

    Example:
        async with InventorySync(client) as sync:
            await sync.refresh_now()
            rows = sync.visible_rows
    """

    def __init__(
        self,
        client: InventoryClient | None = None,
        settings: SyncSettings | None = None,
    ):
        """Initialize the view state.

        Args:
            client: Remote inventory client. If None, uses global instance.
            settings: Refresh settings. If None, uses global settings.
        """
        self._settings = settings or get_settings().sync
        client = client or get_client()

        self.state = RefreshState()
        self.store = SnapshotStore()
        self.notifications = NotificationCenter(history=self._settings.notification_history)
        self.fetcher = RemoteFetcher(client)
        self.guard = SetupGuard(self.state, self.notifications)
        self.scheduler = RefreshScheduler(
            self.state,
            self.notifications,
            interval=self._settings.refresh_interval_seconds,
            on_tick=self._scheduled_refresh,
            on_resume=self._resume_refresh,
        )
        self.mutations = MutationCoordinator(
            client, self.scheduler, self.notifications, reload=self._load_visibly
        )
        self._debouncer = Debouncer(self._settings.search_debounce_seconds, self._search_settled)

        self.search_query = ""
        self.category: str | None = None
        self.loading = True
        self._remote_stats: InventoryStats | None = None
        self._visible: Snapshot = ()
        self.store.subscribe(self._snapshot_replaced)

    # Lifecycle

    async def __aenter__(self) -> "InventorySync":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unmount()

    async def mount(self) -> None:
        """Load the first snapshot and start the refresh loop."""
        await self._load_visibly()
        self.scheduler.start()

    async def unmount(self) -> None:
        """Stop the refresh loop and drop any pending search."""
        self._debouncer.cancel()
        await self.scheduler.close()

    # Read access

    @property
    def snapshot(self) -> Snapshot:
        return self.store.current

    @property
    def visible_rows(self) -> Snapshot:
        return self._visible

    @property
    def categories(self) -> list[str]:
        return categories(self.store.current)

    @property
    def stats(self) -> InventoryStats:
        """Remote counters, or counters derived from the snapshot until they load."""
        return self._remote_stats or InventoryStats.from_snapshot(self.store.current)

    @property
    def refresh_enabled(self) -> bool:
        return self.state.enabled

    @property
    def locked(self) -> bool:
        return self.state.locked

    @property
    def needs_setup(self) -> bool:
        return self.guard.needs_setup

    @property
    def scheduler_state(self) -> SchedulerState:
        return self.scheduler.state

    @property
    def status_message(self) -> str:
        """Header line describing what the refresh loop is doing."""
        if self.needs_setup:
            return (
                "Enter category, quantity, unit and price for new items. "
                "Stock updates start automatically once they are complete."
            )
        if self.locked:
            return "Live updates are paused until the required fields are filled in."
        if self.refresh_enabled:
            return f"Live updates every {self.scheduler.interval:g}s"
        return "Manage your inventory and refresh whenever you like."

    # Refresh pipeline

    async def _refresh(self, *, detect_alerts: bool) -> list[AlertEvent]:
        """Fetch, classify, diff and replace the snapshot.

        The diff runs against the snapshot that was current when this
        fetch started, whatever replaced it in the meantime.

        Raises:
            RemoteError: If the fetch fails. The snapshot is left untouched.
        """
        previous = self.store.current
        records = await self.fetcher.fetch_snapshot(self.search_query)
        status = self.guard.evaluate(records)

        alerts: list[AlertEvent] = []
        if detect_alerts and previous and not status.requires_setup:
            alerts = diff(previous, records)

        self.store.replace(records)

        for event in alerts:
            logger.info(
                "stock_alert_raised",
                record_id=event.record_id,
                kind=event.kind.value,
                quantity=event.record.quantity,
                min_quantity=event.record.min_quantity,
            )
            self.notifications.alert(event)
        return alerts

    async def _scheduled_refresh(self) -> None:
        await self._refresh(detect_alerts=True)
        await self.load_stats()

    async def _load_visibly(self, *, detect_alerts: bool = False) -> bool:
        """Load with the loading flag set, reporting failures to the user."""
        self.loading = True
        try:
            await self._refresh(detect_alerts=detect_alerts)
        except RemoteError as e:
            logger.error("inventory_load_failed", operation=e.operation, error=str(e))
            self.notifications.error(LOAD_FAILED_MESSAGE)
            return False
        finally:
            self.loading = False
        await self.load_stats()
        return True

    async def _resume_refresh(self) -> None:
        await self._load_visibly(detect_alerts=True)

    async def load_stats(self) -> InventoryStats:
        """Refresh the remote counters. Failures are only logged."""
        try:
            self._remote_stats = await self.fetcher.fetch_stats()
        except RemoteError as e:
            logger.warning("inventory_stats_failed", error=str(e))
        return self.stats

    async def refresh_now(self) -> bool:
        """Manual refresh, independent of the scheduler state."""
        ok = await self._load_visibly(detect_alerts=True)
        if ok:
            self.notifications.success(REFRESHED_MESSAGE)
        return ok

    async def toggle_auto_refresh(self) -> bool:
        """Pause or resume automatic refresh. Rejected while locked or saving."""
        return await self.scheduler.toggle()

    # View filter

    def set_search_query(self, query: str) -> None:
        """Filter locally at once and reload from the server after a pause."""
        self.search_query = query
        self._recompute_view()
        self._debouncer.trigger(query)

    def select_category(self, category: str | None) -> None:
        self.category = category or None
        self._recompute_view()

    async def _search_settled(self, query: str) -> None:
        logger.debug("search_settled", search=query)
        await self._load_visibly()

    def _recompute_view(self) -> None:
        self._visible = visible(self.store.current, self.search_query, self.category)

    def _snapshot_replaced(self, previous: Snapshot, current: Snapshot) -> None:
        if self.category and self.category not in categories(current):
            logger.info("category_filter_reset", category=self.category)
            self.category = None
        self._recompute_view()

    # Writes

    async def create_item(self, fields: InventoryCreate) -> InventoryRecord:
        return await self.mutations.create(fields)

    async def update_item(self, record_id: int, patch: InventoryUpdate) -> InventoryRecord:
        """Update a record and clear the filters so it stays visible."""
        self._debouncer.cancel()
        self.search_query = ""
        self.category = None
        self._recompute_view()
        return await self.mutations.update(record_id, patch)

    async def delete_item(self, record_id: int) -> None:
        await self.mutations.delete(record_id)
