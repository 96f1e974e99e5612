from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: entries
# ---------------------------


class LedgerEntry(Base):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    chat_id: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False, server_default="")
    # Entry code as typed by the user (e.g. ``F``, ``RENT``, ``XFER``, ``SAL``).
    code: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Spending category label assigned at ingestion. When NULL, readers derive
    # it from the first word of ``description``.
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    currency: Mapped[str | None] = mapped_column(CHAR(3), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Amount in the ledger's base currency, frozen at insert time when an FX
    # rate was known. NULL means "convert on read".
    base_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    fx_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    is_transfer: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.false()
    )
    is_income: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa_expr.false())

    __table_args__ = (Index("idx_entries_chat_created", "chat_id", "created_at"),)


# ---------------------------
# Reference: fx_rates
# ---------------------------


class FxRate(Base):
    __tablename__ = "fx_rates"

    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    currency: Mapped[str] = mapped_column(CHAR(3), primary_key=True)
    # Multiplier converting one unit of ``currency`` into the base currency.
    to_base: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)

    __table_args__ = (CheckConstraint("to_base > 0", name="ck_fx_rates_to_base_positive"),)


__all__ = [
    "Base",
    "FxRate",
    "LedgerEntry",
]
