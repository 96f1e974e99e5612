from datetime import UTC, date, datetime

import pytest
from db.client import session_scope
from db.models.ledger import LedgerEntry
from helpers.db import seed_entries

from ledger_insights.store import LedgerStore


def _entry(chat_id="c1", amount="10", description="food lunch", **kw):
    return {"chat_id": chat_id, "amount": amount, "description": description, **kw}


def test_add_entry_derives_flags_and_base_amount(database_url):
    with session_scope(database_url=database_url) as s:
        store = LedgerStore(s)
        xfer = store.add_entry(chat_id="c1", amount="5", description="move", code="xfer")
        pay = store.add_entry(chat_id="c1", amount="500", description="salary", code="SAL")
        plain = store.add_entry(chat_id="c1", amount="12.5", description="food lunch")

        assert xfer.is_transfer and not xfer.is_income
        assert pay.is_income and not pay.is_transfer
        assert not plain.is_transfer and not plain.is_income
        assert float(plain.base_amount) == pytest.approx(12.5)
        assert float(plain.fx_rate) == pytest.approx(1.0)


def test_base_amount_frozen_when_rate_known(database_url):
    when = datetime(2024, 5, 10, tzinfo=UTC)
    seed_entries(
        database_url=database_url,
        rates=[(date(2024, 5, 1), "USD", 0.71)],
        entries=[
            _entry(amount="100", currency="usd", created_at=when),
            _entry(amount="20", currency="EUR", created_at=when),
        ],
    )

    with session_scope(database_url=database_url) as s:
        # A later rate change does not touch the stored base amount.
        LedgerStore(s).set_fx_rate(date(2024, 5, 1), "USD", 2.0)
        rows = s.query(LedgerEntry).order_by(LedgerEntry.id).all()
        assert rows[0].currency == "USD"
        assert float(rows[0].base_amount) == pytest.approx(71.0)
        assert rows[1].base_amount is None and rows[1].fx_rate is None


def test_fx_rate_on_uses_latest_on_or_before(database_url):
    with session_scope(database_url=database_url) as s:
        store = LedgerStore(s, base_currency="jod")
        store.set_fx_rate(date(2024, 1, 1), "USD", 0.70)
        store.set_fx_rate(date(2024, 3, 1), "USD", 0.72)

        assert store.fx_rate_on("JOD", date(2000, 1, 1)) == 1.0
        assert store.fx_rate_on("usd", date(2023, 12, 31)) is None
        assert store.fx_rate_on("USD", date(2024, 2, 15)) == pytest.approx(0.70)
        assert store.fx_rate_on("USD", date(2024, 3, 1)) == pytest.approx(0.72)
        assert store.fx_rate_on("GBP", date(2024, 3, 1)) is None


def test_set_fx_rate_replaces_and_validates(database_url):
    with session_scope(database_url=database_url) as s:
        store = LedgerStore(s)
        store.set_fx_rate(date(2024, 1, 1), "USD", 0.70)
        store.set_fx_rate(date(2024, 1, 1), "USD", 0.75)
        assert store.fx_rate_on("USD", date(2024, 1, 1)) == pytest.approx(0.75)

        with pytest.raises(ValueError):
            store.set_fx_rate(date(2024, 1, 1), "USD", 0)
        with pytest.raises(ValueError):
            store.set_fx_rate(date(2024, 1, 1), "", 1.0)


def test_entries_between_is_half_open_and_filters_chat(database_url):
    seed_entries(
        database_url=database_url,
        entries=[
            _entry(created_at=datetime(2024, 4, 30, 23, 59, tzinfo=UTC)),
            _entry(amount="1", created_at=datetime(2024, 5, 1, tzinfo=UTC)),
            _entry(amount="2", chat_id="c2", created_at=datetime(2024, 5, 15, tzinfo=UTC)),
            _entry(amount="3", created_at=datetime(2024, 6, 1, tzinfo=UTC)),
        ],
    )
    start, end = datetime(2024, 5, 1, tzinfo=UTC), datetime(2024, 6, 1, tzinfo=UTC)

    with session_scope(database_url=database_url) as s:
        store = LedgerStore(s)
        assert [r.amount for r in store.entries_between(None, start, end)] == [1.0, 2.0]
        assert [r.amount for r in store.entries_between("c1", start, end)] == [1.0]
        assert store.distinct_chat_ids() == ["c1", "c2"]


def test_records_carry_category_and_flags(database_url):
    when = datetime(2024, 5, 2, tzinfo=UTC)
    seed_entries(
        database_url=database_url,
        entries=[
            _entry(description="Bills electricity", created_at=when),
            _entry(description="ignored", category="G", created_at=when),
            _entry(description=None, created_at=when),
            _entry(description="rent", code="XFER", created_at=when),
        ],
    )

    with session_scope(database_url=database_url) as s:
        records = LedgerStore(s).entries_between(
            "c1", datetime(2024, 5, 1, tzinfo=UTC), datetime(2024, 6, 1, tzinfo=UTC)
        )

    assert [r.category for r in records] == ["bills", "g", "uncategorized", "rent"]
    assert [r.is_transfer for r in records] == [False, False, False, True]
    assert all(r.created_at.tzinfo is not None for r in records)
    assert all(r.base_amount == pytest.approx(10.0) for r in records)


def test_invalid_amount_is_rejected(database_url):
    with session_scope(database_url=database_url) as s, pytest.raises(ValueError):
        LedgerStore(s).add_entry(chat_id="c1", amount="ten")
