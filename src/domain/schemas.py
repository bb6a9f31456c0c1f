from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.commands import Period
from domain.models import Currency


class InboundMessage(BaseModel):
    sender: str = Field(min_length=1, description="Channel identifier of the sender, e.g. whatsapp:+447...")
    text: str = ""


class EngineReply(BaseModel):
    reply: str
    outcome: Literal["ok", "usage", "rejected", "unknown", "store_error"] = "ok"
    command: Optional[str] = None
    error: Optional[str] = None


class SendMessageRequest(BaseModel):
    to: Optional[str] = None
    body: Optional[str] = None


class SentMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    sid: str
    status: Optional[str] = None
    to: str
    from_: Optional[str] = Field(default=None, alias="from")


class CurrencySales(BaseModel):
    amount: Decimal = Decimal("0")
    quantity: int = 0


class RankedProduct(BaseModel):
    item: str
    currency: Currency
    revenue: Decimal
    quantity: int


class RankedCategory(BaseModel):
    category: str
    currency: Currency
    total: Decimal


class StockItem(BaseModel):
    item: str
    quantity: int
    recorded_at: datetime


class Summary(BaseModel):
    """
    Aggregated view of one business over a reporting window.

    `sales`, `expenses` and `net` are keyed by currency and never mix
    currencies. `stock` is the latest level per item regardless of the window.
    """

    business_id: int
    business_name: str
    period: Period
    period_label: str
    since: datetime
    until: datetime
    sales: Dict[Currency, CurrencySales] = Field(default_factory=dict)
    expenses: Dict[Currency, Decimal] = Field(default_factory=dict)
    net: Dict[Currency, Decimal] = Field(default_factory=dict)
    top_products: List[RankedProduct] = Field(default_factory=list)
    top_categories: List[RankedCategory] = Field(default_factory=list)
    stock: List[StockItem] = Field(default_factory=list)

    @property
    def total_sales(self) -> Decimal:
        return sum((line.amount for line in self.sales.values()), Decimal("0"))

    @property
    def total_expenses(self) -> Decimal:
        return sum(self.expenses.values(), Decimal("0"))


class DetailedReport(BaseModel):
    summary: Summary
    tips: List[str] = Field(default_factory=list)
