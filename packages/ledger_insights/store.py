# ruff: noqa: I001
"""Ledger storage backed by the shared ``db`` library.

``LedgerStore`` wraps a SQLAlchemy session over the ``entries`` and
``fx_rates`` tables (see ``db.models.ledger``). Reads return
:class:`~ledger_insights.models.TransactionRecord` values so the numeric
modules never see ORM objects. Callers own the session and its transaction
scope (``db.client.session_scope``).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.ledger import FxRate, LedgerEntry
from .categories import category_from_description
from .logging_setup import get_logger
from .models import TransactionRecord
from .months import as_utc

logger = get_logger(__name__)

TRANSFER_CODE = "XFER"
INCOME_CODES = frozenset({"INC", "INCOME", "SAL", "SALARY", "REV", "REVENUE", "PAY", "BONUS"})


def _to_decimal(raw: Any) -> Decimal:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"invalid amount {raw!r}") from e


def _norm_currency(v: str | None) -> str | None:
    if v is None:
        return None
    s = str(v).strip().upper()
    return s or None


def _naive_utc(ts: datetime) -> datetime:
    # Stored timestamps are UTC; SQLite keeps no offset so compare naive UTC.
    return as_utc(ts).replace(tzinfo=None)


class LedgerStore:
    """Read/write access to ledger entries and FX rates for one session."""

    def __init__(self, session: Session, *, base_currency: str = "JOD") -> None:
        self.session = session
        self.base_currency = base_currency.strip().upper()

    # ---- reads ---------------------------------------------------------------

    def entries_between(
        self, chat_id: str | None, start: datetime, end: datetime
    ) -> list[TransactionRecord]:
        """Entries with ``start <= created_at < end``, oldest first.

        ``chat_id=None`` returns entries from every chat.
        """

        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.created_at >= _naive_utc(start))
            .where(LedgerEntry.created_at < _naive_utc(end))
            .order_by(LedgerEntry.created_at.asc(), LedgerEntry.id.asc())
        )
        if chat_id is not None:
            stmt = stmt.where(LedgerEntry.chat_id == chat_id)
        rows = self.session.execute(stmt).scalars().all()
        return [self._to_record(row) for row in rows]

    def distinct_chat_ids(self) -> list[str]:
        stmt = select(LedgerEntry.chat_id).distinct().order_by(LedgerEntry.chat_id)
        return list(self.session.execute(stmt).scalars().all())

    def fx_rate_on(self, currency: str, on_date: date) -> float | None:
        """Most recent rate to the base currency on or before ``on_date``.

        The base currency itself always converts at ``1.0``; an unknown
        currency (or a date before its first rate) yields ``None``.
        """

        cur = _norm_currency(currency)
        if cur is None or cur == self.base_currency:
            return 1.0
        stmt = (
            select(FxRate.to_base)
            .where(FxRate.currency == cur)
            .where(FxRate.date <= on_date)
            .order_by(FxRate.date.desc())
            .limit(1)
        )
        rate = self.session.execute(stmt).scalar_one_or_none()
        return float(rate) if rate is not None else None

    # ---- writes --------------------------------------------------------------

    def set_fx_rate(self, on_date: date, currency: str, to_base: float | Decimal | str) -> None:
        """Insert or replace the rate for ``(on_date, currency)``."""

        cur = _norm_currency(currency)
        if cur is None:
            raise ValueError("currency is required")
        rate = _to_decimal(to_base)
        if rate <= 0:
            raise ValueError("rate must be positive")
        existing = self.session.get(FxRate, (on_date, cur))
        if existing is None:
            self.session.add(FxRate(date=on_date, currency=cur, to_base=rate))
        else:
            existing.to_base = rate
        self.session.flush()

    def add_entry(
        self,
        *,
        chat_id: str,
        amount: float | Decimal | str,
        description: str | None = None,
        code: str = "F",
        currency: str | None = None,
        created_at: datetime | None = None,
        user_id: str = "",
        category: str | None = None,
    ) -> LedgerEntry:
        """Insert an entry, deriving transfer/income flags and the base amount.

        ``XFER`` marks a transfer and the income codes (``SAL``, ``INC``, ...)
        mark income. When an FX rate is known at insert time the base-currency
        amount is stored alongside the raw amount.
        """

        ts = created_at or datetime.now(UTC)
        up_code = (code or "").strip().upper()
        cur = _norm_currency(currency)
        amt = _to_decimal(amount)

        rate = self.fx_rate_on(cur or self.base_currency, as_utc(ts).date())
        base = amt * Decimal(str(rate)) if rate is not None else None

        entry = LedgerEntry(
            chat_id=str(chat_id),
            user_id=str(user_id),
            code=up_code or "F",
            amount=amt,
            description=description,
            category=(category.strip().lower() if category else None),
            currency=cur,
            created_at=_naive_utc(ts),
            base_amount=base,
            fx_rate=Decimal(str(rate)) if rate is not None else None,
            is_transfer=up_code == TRANSFER_CODE,
            is_income=up_code in INCOME_CODES,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def add_entries(self, entries: Iterable[dict[str, Any]]) -> int:
        count = 0
        for item in entries:
            self.add_entry(**item)
            count += 1
        logger.info("store: inserted %d entr%s", count, "y" if count == 1 else "ies")
        return count

    # ---- mapping -------------------------------------------------------------

    @staticmethod
    def _to_record(row: LedgerEntry) -> TransactionRecord:
        category = row.category or category_from_description(row.description)
        return TransactionRecord(
            category=category.lower(),
            amount=float(row.amount),
            created_at=as_utc(row.created_at),
            currency=row.currency,
            is_transfer=bool(row.is_transfer) or (row.code or "").upper() == TRANSFER_CODE,
            is_income=bool(row.is_income),
            base_amount=float(row.base_amount) if row.base_amount is not None else None,
            chat_id=row.chat_id,
        )


__all__ = ["INCOME_CODES", "TRANSFER_CODE", "LedgerStore"]
