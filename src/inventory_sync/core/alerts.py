"""Edge-triggered stock alerts computed from two consecutive snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from inventory_sync.core.models import AlertKind, InventoryRecord


@dataclass(frozen=True)
class AlertEvent:
    """A record that crossed a stock threshold between two snapshots."""

    record_id: int
    kind: AlertKind
    record: InventoryRecord

    @property
    def message(self) -> str:
        """Human readable text for the notification surface."""
        if self.kind is AlertKind.OUT_OF_STOCK:
            return f"{self.record.name} is out of stock"
        return (
            f"{self.record.name} is running low "
            f"({self.record.quantity:g}{self.record.unit} left)"
        )


def crossing(previous: InventoryRecord, current: InventoryRecord) -> AlertKind | None:
    """Classify the transition of one record between two observations.

    Returns:
        The threshold entered by ``current``, or None if it was already
        beyond it in ``previous`` or did not reach it.
    """
    if previous.quantity > 0 and current.quantity == 0:
        return AlertKind.OUT_OF_STOCK
    if (
        previous.quantity > previous.min_quantity
        and current.quantity <= current.min_quantity
        and current.quantity > 0
    ):
        return AlertKind.LOW_STOCK
    return None


def diff(
    previous: Iterable[InventoryRecord], current: Iterable[InventoryRecord]
) -> list[AlertEvent]:
    """Compare two snapshots record by record and return alert events.

    Records are matched by id. Records that only exist on one side
    (created or deleted between the snapshots) never alert.

    Examples:
        >>> milk = InventoryRecord(id=1, name="Milk", quantity=10, min_quantity=5)
        >>> [e.kind for e in diff([milk], [milk.model_copy(update={"quantity": 4})])]
        [<AlertKind.LOW_STOCK: 'LOW_STOCK'>]
    """
    before = {record.id: record for record in previous}
    events = []
    for record in current:
        old = before.get(record.id)
        if old is None:
            continue
        kind = crossing(old, record)
        if kind is not None:
            events.append(AlertEvent(record_id=record.id, kind=kind, record=record))
    return events
