"""Notice stream consumed by the toast surface."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from inventory_sync.core.alerts import AlertEvent
from inventory_sync.core.models import AlertKind, NoticeLevel

logger = structlog.get_logger()


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Notice:
    """A message for the user, optionally carrying the alert behind it."""

    level: NoticeLevel
    message: str
    alert: AlertEvent | None = None
    created_ts: datetime = field(default_factory=_utc_now)


NoticeListener = Callable[[Notice], None]


class NotificationCenter:
    """Fans notices out to listeners and keeps a bounded backlog."""

    def __init__(self, history: int = 100):
        self._pending: deque[Notice] = deque(maxlen=history)
        self._listeners: list[NoticeListener] = []

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def publish(self, notice: Notice) -> Notice:
        self._pending.append(notice)
        logger.debug("notice_published", level=notice.level.value, message=notice.message)
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.publish(Notice(NoticeLevel.SUCCESS, message))

    def info(self, message: str) -> Notice:
        return self.publish(Notice(NoticeLevel.INFO, message))

    def error(self, message: str) -> Notice:
        return self.publish(Notice(NoticeLevel.ERROR, message))

    def alert(self, event: AlertEvent) -> Notice:
        level = NoticeLevel.ERROR if event.kind is AlertKind.OUT_OF_STOCK else NoticeLevel.WARNING
        return self.publish(Notice(level, event.message, alert=event))

    def pending(self) -> list[Notice]:
        """Notices not yet drained, oldest first."""
        return list(self._pending)

    def drain(self) -> list[Notice]:
        """Return and clear the pending notices."""
        notices = list(self._pending)
        self._pending.clear()
        return notices
