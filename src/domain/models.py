from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


class Currency(str, Enum):
    GBP = "GBP"
    USD = "USD"
    NGN = "NGN"

    @property
    def symbol(self) -> str:
        return CURRENCY_SYMBOLS[self]

    @classmethod
    def from_code(cls, code: str | None) -> "Currency | None":
        if not code:
            return None
        try:
            return cls(code.strip().upper())
        except ValueError:
            return None


CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.GBP: "£",
    Currency.USD: "$",
    Currency.NGN: "₦",
}

SYMBOL_CURRENCIES: dict[str, Currency] = {symbol: currency for currency, symbol in CURRENCY_SYMBOLS.items()}

# Storage limits: quantities fit a signed 32-bit column, amounts fit NUMERIC(18, 2).
MAX_QUANTITY = 2**31 - 1
AMOUNT_LIMIT = Decimal(10) ** 16
CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency = Currency.NGN


@dataclass(frozen=True)
class Business:
    id: int
    name: str
    channel_id: str
    currency: Currency = Currency.NGN


@dataclass(frozen=True)
class SaleEvent:
    id: int
    business_id: int
    item: str
    quantity: int
    amount: Decimal
    currency: Currency
    created_at: datetime


@dataclass(frozen=True)
class ExpenseEvent:
    id: int
    business_id: int
    category: str
    amount: Decimal
    currency: Currency
    created_at: datetime


@dataclass(frozen=True)
class StockEvent:
    """Absolute stock level of an item at `created_at`, not a delta."""

    id: int
    business_id: int
    item: str
    quantity: int
    created_at: datetime


# Aggregate rows returned by store queries.


@dataclass(frozen=True)
class SalesTotal:
    currency: Currency
    amount: Decimal
    quantity: int


@dataclass(frozen=True)
class ExpenseTotal:
    currency: Currency
    amount: Decimal


@dataclass(frozen=True)
class ProductRank:
    item: str
    currency: Currency
    revenue: Decimal
    quantity: int


@dataclass(frozen=True)
class CategoryRank:
    category: str
    currency: Currency
    total: Decimal


@dataclass(frozen=True)
class StockLevel:
    item: str
    quantity: int
    recorded_at: datetime
