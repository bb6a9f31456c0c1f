from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from domain.models import Money


class Period(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return _PERIOD_DAYS[self]

    @property
    def label(self) -> str:
        return _PERIOD_LABELS[self]

    @classmethod
    def parse(cls, keyword: str | None) -> "Period":
        """Map a period keyword to a lookback window; unknown keywords mean today."""
        key = (keyword or "").strip().lower()
        return _PERIOD_ALIASES.get(key, cls.TODAY)


_PERIOD_DAYS = {Period.TODAY: 1, Period.WEEK: 7, Period.MONTH: 30}
_PERIOD_LABELS = {Period.TODAY: "Today", Period.WEEK: "Last 7 days", Period.MONTH: "Last 30 days"}
_PERIOD_ALIASES = {
    "today": Period.TODAY,
    "week": Period.WEEK,
    "7d": Period.WEEK,
    "month": Period.MONTH,
    "30d": Period.MONTH,
}


@dataclass(frozen=True)
class HelpCommand:
    pass


@dataclass(frozen=True)
class SummaryCommand:
    period: Period = Period.TODAY


@dataclass(frozen=True)
class AdviceCommand:
    period: Period = Period.TODAY


@dataclass(frozen=True)
class SaleCommand:
    item: str
    quantity: int
    money: Money


@dataclass(frozen=True)
class ExpenseCommand:
    category: str
    money: Money


@dataclass(frozen=True)
class StockSetCommand:
    item: str
    quantity: int


@dataclass(frozen=True)
class StockAddCommand:
    item: str
    delta: int


@dataclass(frozen=True)
class StockRemoveCommand:
    item: str
    delta: int


@dataclass(frozen=True)
class UnknownCommand:
    text: str


Command = Union[
    HelpCommand,
    SummaryCommand,
    AdviceCommand,
    SaleCommand,
    ExpenseCommand,
    StockSetCommand,
    StockAddCommand,
    StockRemoveCommand,
    UnknownCommand,
]
