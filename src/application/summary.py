from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from domain.commands import Period
from domain.models import Business, Currency, utcnow
from domain.schemas import CurrencySales, RankedCategory, RankedProduct, StockItem, Summary
from infrastructure.storage.store import Store

logger = logging.getLogger(__name__)

CHAT_TOP_N = 3
REPORT_TOP_N = 5


class SummaryAggregator:
    def __init__(self, store: Store, clock: Callable[[], datetime] | None = None):
        self._store = store
        self._clock = clock or utcnow

    def summarize(self, business: Business, period: Period, top_n: int = CHAT_TOP_N) -> Summary:
        until = self._clock()
        since = until - timedelta(days=period.days)
        logger.info(
            "SummaryAggregator start business_id=%s period=%s since=%s top_n=%d",
            business.id, period.value, since.isoformat(), top_n,
        )

        sales = {
            row.currency: CurrencySales(amount=row.amount, quantity=row.quantity)
            for row in self._store.windowed_sales_totals(business.id, since)
        }
        expenses = {row.currency: row.amount for row in self._store.windowed_expense_totals(business.id, since)}

        top_products = [
            RankedProduct(item=row.item, currency=row.currency, revenue=row.revenue, quantity=row.quantity)
            for row in self._store.windowed_top_products(business.id, since, top_n)
        ]
        top_categories = [
            RankedCategory(category=row.category, currency=row.currency, total=row.total)
            for row in self._store.windowed_top_expense_categories(business.id, since, top_n)
        ]
        # Stock is always "as of now", regardless of the reporting window.
        stock = [
            StockItem(item=row.item, quantity=row.quantity, recorded_at=row.recorded_at)
            for row in self._store.latest_stock_snapshot(business.id)
        ]

        return Summary(
            business_id=business.id,
            business_name=business.name,
            period=period,
            period_label=period.label,
            since=since,
            until=until,
            sales=sales,
            expenses=expenses,
            net=compute_net(sales, expenses),
            top_products=top_products,
            top_categories=top_categories,
            stock=stock,
        )


def compute_net(sales: dict[Currency, CurrencySales], expenses: dict[Currency, Decimal]) -> dict[Currency, Decimal]:
    """Sales minus expenses for every currency seen on either side."""
    currencies = sorted(set(sales) | set(expenses))
    zero = Decimal("0")
    return {
        currency: (sales[currency].amount if currency in sales else zero) - expenses.get(currency, zero)
        for currency in currencies
    }
