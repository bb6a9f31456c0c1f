from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal

from domain.models import (
    Business,
    CategoryRank,
    Currency,
    ExpenseEvent,
    ExpenseTotal,
    ProductRank,
    SaleEvent,
    SalesTotal,
    StockEvent,
    StockLevel,
)


class Store(ABC):
    """
    Durable, append-only event log for businesses.

    Implementations raise StoreError for any backend failure. Windowed
    queries cover events with `created_at >= since`.
    """

    name: str = "store"

    @abstractmethod
    def upsert_business(self, channel_id: str, name: str, currency: Currency) -> int:
        """Return the id of the business for `channel_id`, creating it if unseen."""
        raise NotImplementedError

    @abstractmethod
    def business_by_id(self, business_id: int) -> Business:
        raise NotImplementedError

    @abstractmethod
    def append_sale(self, business_id: int, item: str, quantity: int, amount: Decimal, currency: Currency) -> SaleEvent:
        raise NotImplementedError

    @abstractmethod
    def append_expense(self, business_id: int, category: str, amount: Decimal, currency: Currency) -> ExpenseEvent:
        raise NotImplementedError

    @abstractmethod
    def append_stock_event(self, business_id: int, item: str, quantity: int) -> StockEvent:
        raise NotImplementedError

    @abstractmethod
    def latest_stock_quantity(self, business_id: int, item: str) -> int:
        """Quantity of the item's most recent stock event, 0 when none exists."""
        raise NotImplementedError

    @abstractmethod
    def windowed_sales_totals(self, business_id: int, since: datetime) -> list[SalesTotal]:
        raise NotImplementedError

    @abstractmethod
    def windowed_expense_totals(self, business_id: int, since: datetime) -> list[ExpenseTotal]:
        raise NotImplementedError

    @abstractmethod
    def windowed_top_products(self, business_id: int, since: datetime, limit: int) -> list[ProductRank]:
        """Items ranked by revenue, then quantity, both descending."""
        raise NotImplementedError

    @abstractmethod
    def windowed_top_expense_categories(self, business_id: int, since: datetime, limit: int) -> list[CategoryRank]:
        raise NotImplementedError

    @abstractmethod
    def latest_stock_snapshot(self, business_id: int) -> list[StockLevel]:
        """Latest level of every item, most recently updated first."""
        raise NotImplementedError
