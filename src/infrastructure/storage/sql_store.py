from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterator

from sqlalchemy import create_engine, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from domain.errors import BusinessNotFoundError, StoreError
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
from infrastructure.storage.tables import Base, BusinessRow, ExpenseRow, SaleRow, StockRow

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///predicta.db"
_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlStore(Store):
    """Relational event log backed by SQLAlchemy."""

    name = "sql"

    def __init__(self, database_url: str | None = None, clock: Callable[[], datetime] | None = None) -> None:
        self.database_url = database_url or os.getenv("PREDICTA_DATABASE_URL", DEFAULT_DATABASE_URL)
        self._clock = clock or utcnow
        engine_kwargs: dict = {"pool_pre_ping": True}
        if self.database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in _MEMORY_URLS:
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.database_url, **engine_kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        logger.info("SqlStore creating schema url=%s", self._engine.url.render_as_string(hide_password=True))
        Base.metadata.create_all(self._engine)
        self._schema_ready = True

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            self._ensure_schema()
            session = self._session_factory()
        except SQLAlchemyError as exc:
            raise StoreError(f"Store unavailable during {operation}: {exc}") from exc
        try:
            yield session
            session.commit()
        except (SQLAlchemyError, OverflowError) as exc:
            # sqlite3 raises a bare OverflowError for integers wider than 64 bits.
            session.rollback()
            logger.warning("SqlStore %s failed: %s", operation, exc)
            raise StoreError(f"Store failure during {operation}: {exc}") from exc
        finally:
            session.close()

    # ---- businesses ----
    def upsert_business(self, channel_id: str, name: str, currency: Currency) -> int:
        try:
            with self._session("upsert_business") as session:
                row = session.query(BusinessRow).filter(BusinessRow.channel_id == channel_id).one_or_none()
                if row is None:
                    row = BusinessRow(channel_id=channel_id, name=name, currency=currency.value)
                    session.add(row)
                    session.flush()
                    logger.info("SqlStore created business id=%s channel_id=%s", row.id, channel_id)
                return row.id
        except StoreError as exc:
            # A concurrent first message from the same sender already inserted the row.
            if not isinstance(exc.__cause__, IntegrityError):
                raise
        with self._session("upsert_business") as session:
            return session.query(BusinessRow.id).filter(BusinessRow.channel_id == channel_id).scalar()

    def business_by_id(self, business_id: int) -> Business:
        with self._session("business_by_id") as session:
            row = session.get(BusinessRow, business_id)
            if row is None:
                raise BusinessNotFoundError(business_id)
            return Business(id=row.id, name=row.name, channel_id=row.channel_id, currency=Currency(row.currency))

    # ---- appends ----
    def append_sale(self, business_id: int, item: str, quantity: int, amount: Decimal, currency: Currency) -> SaleEvent:
        with self._session("append_sale") as session:
            row = SaleRow(
                business_id=business_id,
                item=item,
                quantity=quantity,
                amount=amount,
                currency=currency.value,
                created_at=self._clock(),
            )
            session.add(row)
            session.flush()
            return SaleEvent(
                id=row.id,
                business_id=business_id,
                item=item,
                quantity=quantity,
                amount=amount,
                currency=currency,
                created_at=_as_utc(row.created_at),
            )

    def append_expense(self, business_id: int, category: str, amount: Decimal, currency: Currency) -> ExpenseEvent:
        with self._session("append_expense") as session:
            row = ExpenseRow(
                business_id=business_id,
                category=category,
                amount=amount,
                currency=currency.value,
                created_at=self._clock(),
            )
            session.add(row)
            session.flush()
            return ExpenseEvent(
                id=row.id,
                business_id=business_id,
                category=category,
                amount=amount,
                currency=currency,
                created_at=_as_utc(row.created_at),
            )

    def append_stock_event(self, business_id: int, item: str, quantity: int) -> StockEvent:
        with self._session("append_stock_event") as session:
            row = StockRow(business_id=business_id, item=item, quantity=quantity, created_at=self._clock())
            session.add(row)
            session.flush()
            return StockEvent(
                id=row.id,
                business_id=business_id,
                item=item,
                quantity=quantity,
                created_at=_as_utc(row.created_at),
            )

    # ---- queries ----
    def latest_stock_quantity(self, business_id: int, item: str) -> int:
        with self._session("latest_stock_quantity") as session:
            quantity = (
                session.query(StockRow.quantity)
                .filter(StockRow.business_id == business_id, StockRow.item == item)
                .order_by(StockRow.id.desc())
                .limit(1)
                .scalar()
            )
            return int(quantity or 0)

    def windowed_sales_totals(self, business_id: int, since: datetime) -> list[SalesTotal]:
        with self._session("windowed_sales_totals") as session:
            rows = (
                session.query(SaleRow.currency, func.sum(SaleRow.amount), func.sum(SaleRow.quantity))
                .filter(SaleRow.business_id == business_id, SaleRow.created_at >= since)
                .group_by(SaleRow.currency)
                .order_by(SaleRow.currency)
                .all()
            )
            return [
                SalesTotal(currency=Currency(currency), amount=Decimal(amount or 0), quantity=int(quantity or 0))
                for currency, amount, quantity in rows
            ]

    def windowed_expense_totals(self, business_id: int, since: datetime) -> list[ExpenseTotal]:
        with self._session("windowed_expense_totals") as session:
            rows = (
                session.query(ExpenseRow.currency, func.sum(ExpenseRow.amount))
                .filter(ExpenseRow.business_id == business_id, ExpenseRow.created_at >= since)
                .group_by(ExpenseRow.currency)
                .order_by(ExpenseRow.currency)
                .all()
            )
            return [ExpenseTotal(currency=Currency(currency), amount=Decimal(amount or 0)) for currency, amount in rows]

    def windowed_top_products(self, business_id: int, since: datetime, limit: int) -> list[ProductRank]:
        revenue = func.sum(SaleRow.amount).label("revenue")
        quantity = func.sum(SaleRow.quantity).label("quantity")
        with self._session("windowed_top_products") as session:
            rows = (
                session.query(SaleRow.item, SaleRow.currency, revenue, quantity)
                .filter(SaleRow.business_id == business_id, SaleRow.created_at >= since)
                .group_by(SaleRow.item, SaleRow.currency)
                .order_by(revenue.desc(), quantity.desc(), SaleRow.item)
                .limit(limit)
                .all()
            )
            return [
                ProductRank(item=item, currency=Currency(currency), revenue=Decimal(rev or 0), quantity=int(qty or 0))
                for item, currency, rev, qty in rows
            ]

    def windowed_top_expense_categories(self, business_id: int, since: datetime, limit: int) -> list[CategoryRank]:
        total = func.sum(ExpenseRow.amount).label("total")
        with self._session("windowed_top_expense_categories") as session:
            rows = (
                session.query(ExpenseRow.category, ExpenseRow.currency, total)
                .filter(ExpenseRow.business_id == business_id, ExpenseRow.created_at >= since)
                .group_by(ExpenseRow.category, ExpenseRow.currency)
                .order_by(total.desc(), ExpenseRow.category)
                .limit(limit)
                .all()
            )
            return [
                CategoryRank(category=category, currency=Currency(currency), total=Decimal(value or 0))
                for category, currency, value in rows
            ]

    def latest_stock_snapshot(self, business_id: int) -> list[StockLevel]:
        with self._session("latest_stock_snapshot") as session:
            latest = (
                session.query(func.max(StockRow.id).label("id"))
                .filter(StockRow.business_id == business_id)
                .group_by(StockRow.item)
                .subquery()
            )
            rows = (
                session.query(StockRow)
                .join(latest, StockRow.id == latest.c.id)
                .order_by(StockRow.id.desc())
                .all()
            )
            return [StockLevel(item=row.item, quantity=row.quantity, recorded_at=_as_utc(row.created_at)) for row in rows]
