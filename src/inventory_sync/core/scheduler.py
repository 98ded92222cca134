"""Timer-driven refresh loop with pause, resume and lock handling."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog

from inventory_sync.client.remote import RemoteError
from inventory_sync.core.guard import RefreshState
from inventory_sync.core.models import SchedulerState
from inventory_sync.core.notifications import NotificationCenter

logger = structlog.get_logger()

LOCKED_MESSAGE = "Finish setting up all items first. Live updates resume automatically."
SAVING_MESSAGE = "Saving your changes. Try again once the list has reloaded."

RefreshCallback = Callable[[], Awaitable[object]]


class RefreshScheduler:
    """Repeatedly runs the refresh pipeline while in the Running state.

    The state is derived from the shared :class:`RefreshState`: locked
    wins over everything, a write in flight forces Paused, otherwise
    ``enabled`` decides between Running and Paused.
    """

    def __init__(
        self,
        state: RefreshState,
        notifications: NotificationCenter,
        *,
        interval: float,
        on_tick: RefreshCallback,
        on_resume: RefreshCallback,
    ):
        """Initialize the scheduler.

        Args:
            state: Refresh flags shared with the setup guard
            notifications: Where rejected user actions are reported
            interval: Seconds between ticks
            on_tick: Scheduled fetch pipeline. RemoteError is swallowed.
            on_resume: Immediate out-of-band fetch after a manual resume
        """
        self._state = state
        self._notifications = notifications
        self.interval = interval
        self._on_tick = on_tick
        self._on_resume = on_resume
        self._task: asyncio.Task | None = None
        self._tick_in_flight = False
        self._suspended = 0

    @property
    def state(self) -> SchedulerState:
        if self._state.locked:
            return SchedulerState.LOCKED
        if self._state.enabled and not self.suspended:
            return SchedulerState.RUNNING
        return SchedulerState.PAUSED

    @property
    def suspended(self) -> bool:
        """True while a write and its reload are in flight."""
        return self._suspended > 0

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    # Lifecycle

    def start(self) -> None:
        """Start the repeating task on the running event loop."""
        if self.started:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("refresh_scheduler_started", interval_seconds=self.interval)

    async def close(self) -> None:
        """Cancel the repeating task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("refresh_scheduler_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("scheduled_refresh_crashed")

    async def tick(self) -> bool:
        """Run one scheduled refresh if Running and no tick is in flight.

        Returns:
            True if the pipeline ran, False if the tick was skipped
        """
        if self.state is not SchedulerState.RUNNING:
            return False
        if self._tick_in_flight:
            logger.debug("refresh_tick_skipped", reason="in_flight")
            return False

        self._tick_in_flight = True
        try:
            await self._on_tick()
        except RemoteError as e:
            # Silent retry on the next tick
            logger.warning("scheduled_refresh_failed", operation=e.operation, error=str(e))
        finally:
            self._tick_in_flight = False
        return True

    # User actions

    def _rejected(self, action: str) -> bool:
        """Reject a user action while locked or while a write is in flight."""
        if self._state.locked:
            reason, message = "locked", LOCKED_MESSAGE
        elif self.suspended:
            reason, message = "saving", SAVING_MESSAGE
        else:
            return False
        logger.info("refresh_toggle_rejected", action=action, reason=reason)
        self._notifications.info(message)
        return True

    def pause(self) -> bool:
        """Pause automatic refresh. Rejected while locked or saving."""
        if self._rejected("pause"):
            return False
        self._state.enabled = False
        logger.info("auto_refresh_paused")
        return True

    async def resume(self) -> bool:
        """Resume automatic refresh and fetch once right away. Rejected while locked or saving."""
        if self._rejected("resume"):
            return False
        self._state.enabled = True
        logger.info("auto_refresh_resumed")
        await self._on_resume()
        return True

    async def toggle(self) -> bool:
        """Flip between Running and Paused. Rejected while locked or saving."""
        if self._state.enabled:
            return self.pause()
        return await self.resume()

    # Mutation support

    def suspend(self) -> bool:
        """Force Paused for the duration of a write.

        Calls nest: ticks and user actions stay blocked until every
        suspend() has been matched by a restore().

        Returns:
            Whether refresh was enabled before, to hand back to restore()
        """
        was_enabled = self._state.enabled
        self._suspended += 1
        if was_enabled and not self._state.locked:
            self._state.enabled = False
            logger.debug("auto_refresh_suspended")
        return was_enabled

    def restore(self, was_enabled: bool) -> None:
        """Undo suspend() once the post-write reload has completed.

        A lock set by the guard during the reload is left in place, and
        an unlock performed by the guard has already re-enabled refresh.
        """
        self._suspended = max(self._suspended - 1, 0)
        if self._state.locked or self.suspended:
            return
        if was_enabled and not self._state.enabled:
            self._state.enabled = True
            logger.debug("auto_refresh_restored")
