"""Local view filtering and search debouncing."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from functools import lru_cache

import structlog

from inventory_sync.core.models import UNSET, Snapshot

logger = structlog.get_logger()


@lru_cache(maxsize=64)
def visible(snapshot: Snapshot, query: str = "", category: str | None = None) -> Snapshot:
    """Rows of the snapshot matching a free-text query and a category.

    A blank query matches everything. Otherwise the name or the category
    must contain the query, case-insensitively. An unset category
    matches everything, a set one must be equal.
    """
    term = (query or "").strip().lower()
    if not term and not category:
        return snapshot
    return tuple(
        record
        for record in snapshot
        if (not term or term in record.name.lower() or term in (record.category or "").lower())
        and (not category or record.category == category)
    )


def categories(snapshot: Snapshot) -> list[str]:
    """Sorted distinct categories, ignoring blanks and the unset sentinel."""
    return sorted({r.category for r in snapshot if r.category and r.category != UNSET})


class Debouncer:
    """Collapses bursts of calls into one, fired after a quiet period."""

    def __init__(self, delay: float, callback: Callable[[str], Awaitable[object]]):
        self.delay = delay
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, value: str) -> None:
        """Schedule the callback, replacing any call still waiting."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(value))

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending call, if any, to finish."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def _fire(self, value: str) -> None:
        await asyncio.sleep(self.delay)
        logger.debug("debounced_call_fired", value=value)
        await self._callback(value)
