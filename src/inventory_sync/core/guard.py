"""Setup guard: locks automatic refresh while records are incomplete."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from inventory_sync.core.models import InventoryRecord
from inventory_sync.core.notifications import NotificationCenter

logger = structlog.get_logger()

SETUP_COMPLETE_MESSAGE = "All items are set up. Live inventory updates have started."


@dataclass
class RefreshState:
    """Refresh flags shared by the guard and the scheduler of one view.

    Only the guard writes ``locked``. The scheduler and the mutation
    coordinator write ``enabled`` while unlocked.
    """

    enabled: bool = True
    locked: bool = False


@dataclass(frozen=True)
class SetupStatus:
    """Classification of a snapshot."""

    requires_setup: bool
    placeholder_ids: tuple[int, ...] = ()


def classify(records: Iterable[InventoryRecord]) -> SetupStatus:
    """Check a snapshot for placeholder records."""
    placeholders = tuple(r.id for r in records if r.is_placeholder)
    return SetupStatus(requires_setup=bool(placeholders), placeholder_ids=placeholders)


class SetupGuard:
    """Applies lock and unlock transitions derived from each snapshot."""

    def __init__(self, state: RefreshState, notifications: NotificationCenter):
        self._state = state
        self._notifications = notifications
        self.needs_setup = False

    def evaluate(self, records: Iterable[InventoryRecord]) -> SetupStatus:
        """Classify a freshly fetched snapshot and update the refresh state.

        A snapshot with placeholders always leaves the state disabled and
        locked. The first snapshot without placeholders after a lock
        re-enables refresh and publishes a single success notice.
        """
        status = classify(records)
        self.needs_setup = status.requires_setup

        if status.requires_setup:
            if not self._state.locked:
                logger.info(
                    "auto_refresh_locked",
                    placeholder_count=len(status.placeholder_ids),
                    placeholder_ids=list(status.placeholder_ids),
                )
            self._state.enabled = False
            self._state.locked = True
        elif self._state.locked:
            self._state.locked = False
            self._state.enabled = True
            logger.info("auto_refresh_unlocked")
            self._notifications.success(SETUP_COMPLETE_MESSAGE)

        return status
