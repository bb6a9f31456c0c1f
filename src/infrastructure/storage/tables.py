from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Amounts are kept to two decimal places.
AMOUNT = Numeric(18, 2)


class BusinessRow(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(String(128), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")


class SaleRow(Base):
    __tablename__ = "sale_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    item = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    amount = Column(AMOUNT, nullable=False)
    currency = Column(String(3), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_sale_events_business_created", "business_id", "created_at"),)


class ExpenseRow(Base):
    __tablename__ = "expense_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    category = Column(String(200), nullable=False)
    amount = Column(AMOUNT, nullable=False)
    currency = Column(String(3), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_expense_events_business_created", "business_id", "created_at"),)


class StockRow(Base):
    __tablename__ = "stock_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    item = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_stock_events_business_item", "business_id", "item"),)
