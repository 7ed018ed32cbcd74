"""Change notifications for the summary/notification layer.

``ledger_notifier`` is created once per process at import time and starts with
no subscribers. ``reset()`` drops every subscriber; tests call it between runs.
Events are published only after the write they describe has committed.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional


logger = logging.getLogger(__name__)

EXPENSE_CREATED = "expense_created"
EXPENSE_DELETED = "expense_deleted"
SETTLEMENT_RECORDED = "settlement_recorded"
SETTLEMENT_DELETED = "settlement_deleted"


@dataclass(frozen=True)
class LedgerEvent:
    kind: str
    group_id: int
    balances: dict[str, Decimal] = field(default_factory=dict)
    expense_id: Optional[int] = None
    settlement_id: Optional[int] = None


class LedgerNotifier:
    def __init__(self):
        self._subscribers: list[Callable[[LedgerEvent], None]] = []

    def subscribe(self, callback: Callable[[LedgerEvent], None]):
        self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Callable[[LedgerEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def reset(self) -> None:
        self._subscribers.clear()

    def publish(self, event: LedgerEvent) -> None:
        """
        Deliver an event to every subscriber.

        The write has already committed, so a failing subscriber is logged
        and the remaining subscribers still run.
        """
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Ledger subscriber failed handling {event.kind} for group {event.group_id}")


ledger_notifier = LedgerNotifier()
