from __future__ import annotations

import logging
from dataclasses import dataclass

from domain.commands import ExpenseCommand, SaleCommand
from domain.models import MAX_QUANTITY, ExpenseEvent, SaleEvent, StockEvent
from infrastructure.storage.store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockChange:
    item: str
    previous: int
    current: int
    requested_delta: int

    @property
    def floored(self) -> bool:
        """True when a removal asked for more than was in stock."""
        return self.requested_delta < 0 and self.current - self.previous != self.requested_delta

    @property
    def capped(self) -> bool:
        return self.requested_delta > 0 and self.current - self.previous != self.requested_delta


class EventRecorder:
    """Appends validated write commands to the store as immutable events."""

    def __init__(self, store: Store):
        self._store = store

    def record_sale(self, business_id: int, command: SaleCommand) -> SaleEvent:
        event = self._store.append_sale(
            business_id,
            command.item,
            command.quantity,
            command.money.amount,
            command.money.currency,
        )
        logger.info(
            "Recorded sale business_id=%s item=%s qty=%d amount=%s currency=%s",
            business_id, event.item, event.quantity, event.amount, event.currency.value,
        )
        return event

    def record_expense(self, business_id: int, command: ExpenseCommand) -> ExpenseEvent:
        event = self._store.append_expense(business_id, command.category, command.money.amount, command.money.currency)
        logger.info(
            "Recorded expense business_id=%s category=%s amount=%s currency=%s",
            business_id, event.category, event.amount, event.currency.value,
        )
        return event

    def set_stock(self, business_id: int, item: str, quantity: int) -> StockEvent:
        event = self._store.append_stock_event(business_id, item, quantity)
        logger.info("Recorded stock level business_id=%s item=%s qty=%d", business_id, item, quantity)
        return event

    def adjust_stock(self, business_id: int, item: str, delta: int) -> StockChange:
        """
        Read the item's current level and append `current + delta`, floored at 0
        and capped at MAX_QUANTITY.

        Not atomic: two concurrent adjustments of the same item can both read
        the same level, and the later append wins.
        """
        previous = self._store.latest_stock_quantity(business_id, item)
        current = min(max(previous + delta, 0), MAX_QUANTITY)
        self._store.append_stock_event(business_id, item, current)
        logger.info(
            "Adjusted stock business_id=%s item=%s previous=%d delta=%d current=%d",
            business_id, item, previous, delta, current,
        )
        return StockChange(item=item, previous=previous, current=current, requested_delta=delta)
