"""Holder of the last-known-good inventory snapshot."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from inventory_sync.core.models import InventoryRecord, Snapshot

logger = structlog.get_logger()

SnapshotListener = Callable[[Snapshot, Snapshot], None]


class SnapshotStore:
    """Owns the current snapshot and notifies listeners when it is replaced.

    Snapshots are tuples of frozen records and are only ever swapped
    wholesale, so a reference taken before a fetch stays valid while
    the next snapshot is being built.
    """

    def __init__(self):
        self._current: Snapshot = ()
        self._listeners: list[SnapshotListener] = []

    @property
    def current(self) -> Snapshot:
        return self._current

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with (previous, current) on replace.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def replace(self, records: Iterable[InventoryRecord]) -> Snapshot:
        """Swap in a new snapshot and notify listeners."""
        previous = self._current
        self._current = tuple(records)
        logger.debug("snapshot_replaced", previous_size=len(previous), size=len(self._current))
        for listener in list(self._listeners):
            listener(previous, self._current)
        return self._current
