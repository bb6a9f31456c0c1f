from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from application.summary import REPORT_TOP_N, SummaryAggregator, compute_net
from domain.commands import Period
from domain.models import Currency
from domain.schemas import CurrencySales
from infrastructure.storage.memory_store import InMemoryStore


class _Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class SummaryAggregatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock(datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc))
        self.store = InMemoryStore(clock=self.clock)
        business_id = self.store.upsert_business("whatsapp:+2348000000000", "Mama Put", Currency.NGN)
        self.business = self.store.business_by_id(business_id)
        self.aggregator = SummaryAggregator(self.store, clock=self.clock)

    def _at(self, delta: timedelta) -> None:
        self.clock.now = datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc) + delta

    def test_per_currency_totals_and_net(self) -> None:
        self.store.append_sale(self.business.id, "rice", 3, Decimal("45000"), Currency.NGN)
        self.store.append_sale(self.business.id, "beans", 2, Decimal("8000"), Currency.NGN)
        self.store.append_sale(self.business.id, "bin", 1, Decimal("40"), Currency.GBP)
        self.store.append_expense(self.business.id, "fuel", Decimal("5000"), Currency.NGN)
        self.store.append_expense(self.business.id, "delivery", Decimal("12"), Currency.USD)

        summary = self.aggregator.summarize(self.business, Period.TODAY)

        self.assertEqual(summary.sales[Currency.NGN].amount, Decimal("53000"))
        self.assertEqual(summary.sales[Currency.NGN].quantity, 5)
        self.assertEqual(summary.expenses[Currency.NGN], Decimal("5000"))
        self.assertEqual(summary.net[Currency.NGN], Decimal("48000"))
        self.assertEqual(summary.net[Currency.GBP], Decimal("40"))
        self.assertEqual(summary.net[Currency.USD], Decimal("-12"))
        for currency in summary.net:
            sold = summary.sales[currency].amount if currency in summary.sales else Decimal("0")
            spent = summary.expenses.get(currency, Decimal("0"))
            self.assertEqual(summary.net[currency], sold - spent)

    def test_window_excludes_older_events(self) -> None:
        self._at(timedelta(days=-3))
        self.store.append_sale(self.business.id, "rice", 1, Decimal("1000"), Currency.NGN)
        self._at(timedelta(0))
        self.store.append_sale(self.business.id, "rice", 1, Decimal("2000"), Currency.NGN)

        today = self.aggregator.summarize(self.business, Period.TODAY)
        week = self.aggregator.summarize(self.business, Period.WEEK)

        self.assertEqual(today.sales[Currency.NGN].amount, Decimal("2000"))
        self.assertEqual(week.sales[Currency.NGN].amount, Decimal("3000"))
        self.assertEqual(week.period_label, "Last 7 days")

    def test_top_products_rank_by_revenue_then_quantity(self) -> None:
        self.store.append_sale(self.business.id, "beans", 1, Decimal("500"), Currency.NGN)
        self.store.append_sale(self.business.id, "rice", 4, Decimal("500"), Currency.NGN)
        self.store.append_sale(self.business.id, "garri", 1, Decimal("900"), Currency.NGN)
        self.store.append_sale(self.business.id, "yam", 1, Decimal("100"), Currency.NGN)

        summary = self.aggregator.summarize(self.business, Period.TODAY)

        self.assertEqual([p.item for p in summary.top_products], ["garri", "rice", "beans"])
        detailed = self.aggregator.summarize(self.business, Period.TODAY, top_n=REPORT_TOP_N)
        self.assertEqual(len(detailed.top_products), 4)

    def test_top_expense_categories(self) -> None:
        self.store.append_expense(self.business.id, "fuel", Decimal("100"), Currency.NGN)
        self.store.append_expense(self.business.id, "rent", Decimal("900"), Currency.NGN)
        self.store.append_expense(self.business.id, "fuel", Decimal("250"), Currency.NGN)

        summary = self.aggregator.summarize(self.business, Period.TODAY)

        self.assertEqual([(c.category, c.total) for c in summary.top_categories], [("rent", Decimal("900")), ("fuel", Decimal("350"))])

    def test_stock_snapshot_ignores_window(self) -> None:
        self._at(timedelta(days=-90))
        self.store.append_stock_event(self.business.id, "rice", 20)
        self._at(timedelta(0))
        self.store.append_stock_event(self.business.id, "beans", 5)

        summary = self.aggregator.summarize(self.business, Period.TODAY)

        self.assertEqual([(s.item, s.quantity) for s in summary.stock], [("beans", 5), ("rice", 20)])

    def test_empty_business(self) -> None:
        summary = self.aggregator.summarize(self.business, Period.MONTH)
        self.assertEqual(summary.sales, {})
        self.assertEqual(summary.net, {})
        self.assertEqual(summary.total_sales, Decimal("0"))
        self.assertEqual(summary.business_name, "Mama Put")


class ComputeNetTests(unittest.TestCase):
    def test_union_of_currencies(self) -> None:
        net = compute_net(
            {Currency.NGN: CurrencySales(amount=Decimal("100"), quantity=1)},
            {Currency.GBP: Decimal("5")},
        )
        self.assertEqual(net, {Currency.GBP: Decimal("-5"), Currency.NGN: Decimal("100")})

    def test_absent_currencies_never_appear(self) -> None:
        net = compute_net({Currency.NGN: CurrencySales(amount=Decimal("1"), quantity=1)}, {})
        self.assertNotIn(Currency.USD, net)
        self.assertNotIn(Currency.GBP, net)


if __name__ == "__main__":
    unittest.main()
