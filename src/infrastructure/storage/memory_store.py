from __future__ import annotations

import itertools
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable

from domain.errors import BusinessNotFoundError
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
    utcnow,
)
from infrastructure.storage.store import Store


class InMemoryStore(Store):
    """Process-local store; state is lost on exit."""

    name = "memory"

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utcnow
        self._ids = itertools.count(1)
        self._businesses: dict[int, Business] = {}
        self._by_channel: dict[str, int] = {}
        self._sales: list[SaleEvent] = []
        self._expenses: list[ExpenseEvent] = []
        self._stock: list[StockEvent] = []

    # ---- businesses ----
    def upsert_business(self, channel_id: str, name: str, currency: Currency) -> int:
        existing = self._by_channel.get(channel_id)
        if existing is not None:
            return existing
        business = Business(id=next(self._ids), name=name, channel_id=channel_id, currency=currency)
        self._businesses[business.id] = business
        self._by_channel[channel_id] = business.id
        return business.id

    def business_by_id(self, business_id: int) -> Business:
        try:
            return self._businesses[business_id]
        except KeyError:
            raise BusinessNotFoundError(business_id) from None

    # ---- appends ----
    def append_sale(self, business_id: int, item: str, quantity: int, amount: Decimal, currency: Currency) -> SaleEvent:
        event = SaleEvent(
            id=next(self._ids),
            business_id=business_id,
            item=item,
            quantity=quantity,
            amount=amount,
            currency=currency,
            created_at=self._clock(),
        )
        self._sales.append(event)
        return event

    def append_expense(self, business_id: int, category: str, amount: Decimal, currency: Currency) -> ExpenseEvent:
        event = ExpenseEvent(
            id=next(self._ids),
            business_id=business_id,
            category=category,
            amount=amount,
            currency=currency,
            created_at=self._clock(),
        )
        self._expenses.append(event)
        return event

    def append_stock_event(self, business_id: int, item: str, quantity: int) -> StockEvent:
        event = StockEvent(id=next(self._ids), business_id=business_id, item=item, quantity=quantity, created_at=self._clock())
        self._stock.append(event)
        return event

    # ---- queries ----
    def latest_stock_quantity(self, business_id: int, item: str) -> int:
        for event in reversed(self._stock):
            if event.business_id == business_id and event.item == item:
                return event.quantity
        return 0

    def windowed_sales_totals(self, business_id: int, since: datetime) -> list[SalesTotal]:
        amounts: dict[Currency, Decimal] = defaultdict(Decimal)
        quantities: dict[Currency, int] = defaultdict(int)
        for event in self._window(self._sales, business_id, since):
            amounts[event.currency] += event.amount
            quantities[event.currency] += event.quantity
        return [SalesTotal(currency=c, amount=amounts[c], quantity=quantities[c]) for c in sorted(amounts)]

    def windowed_expense_totals(self, business_id: int, since: datetime) -> list[ExpenseTotal]:
        amounts: dict[Currency, Decimal] = defaultdict(Decimal)
        for event in self._window(self._expenses, business_id, since):
            amounts[event.currency] += event.amount
        return [ExpenseTotal(currency=c, amount=amounts[c]) for c in sorted(amounts)]

    def windowed_top_products(self, business_id: int, since: datetime, limit: int) -> list[ProductRank]:
        revenue: dict[tuple[str, Currency], Decimal] = defaultdict(Decimal)
        quantity: dict[tuple[str, Currency], int] = defaultdict(int)
        for event in self._window(self._sales, business_id, since):
            key = (event.item, event.currency)
            revenue[key] += event.amount
            quantity[key] += event.quantity
        ranked = sorted(revenue, key=lambda k: (-revenue[k], -quantity[k], k[0]))
        return [
            ProductRank(item=item, currency=currency, revenue=revenue[(item, currency)], quantity=quantity[(item, currency)])
            for item, currency in ranked[:limit]
        ]

    def windowed_top_expense_categories(self, business_id: int, since: datetime, limit: int) -> list[CategoryRank]:
        totals: dict[tuple[str, Currency], Decimal] = defaultdict(Decimal)
        for event in self._window(self._expenses, business_id, since):
            totals[(event.category, event.currency)] += event.amount
        ranked = sorted(totals, key=lambda k: (-totals[k], k[0]))
        return [CategoryRank(category=category, currency=currency, total=totals[(category, currency)]) for category, currency in ranked[:limit]]

    def latest_stock_snapshot(self, business_id: int) -> list[StockLevel]:
        latest: dict[str, StockEvent] = {}
        for event in self._stock:
            if event.business_id == business_id:
                latest[event.item] = event
        ordered = sorted(latest.values(), key=lambda e: e.id, reverse=True)
        return [StockLevel(item=e.item, quantity=e.quantity, recorded_at=e.created_at) for e in ordered]

    def _window(self, events, business_id: int, since: datetime):
        return [e for e in events if e.business_id == business_id and e.created_at >= since]
