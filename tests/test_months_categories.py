from datetime import UTC, datetime, timedelta, timezone

import pytest

from ledger_insights.categories import (
    canonical_category,
    category_from_description,
    category_synonyms,
    is_all,
    is_bills,
)
from ledger_insights.months import last_n_month_keys, month_bounds, month_key, parse_month_key


def test_last_n_month_keys_crosses_year_boundary():
    now = datetime(2024, 2, 10, tzinfo=UTC)
    assert last_n_month_keys(4, now) == ["2023-11", "2023-12", "2024-01", "2024-02"]


def test_last_n_month_keys_rejects_non_positive():
    with pytest.raises(ValueError):
        last_n_month_keys(0)


def test_month_key_converts_to_utc():
    # 00:30 on March 1st at UTC+3 is still February in UTC.
    ts = datetime(2024, 3, 1, 0, 30, tzinfo=timezone(timedelta(hours=3)))
    assert month_key(ts) == "2024-02"


def test_month_bounds_are_half_open():
    start, end = month_bounds("2023-12")
    assert start == datetime(2023, 12, 1, tzinfo=UTC)
    assert end == datetime(2024, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize("bad", ["2024-13", "2024-00", "24-01", "2024/01", ""])
def test_parse_month_key_rejects_invalid(bad):
    with pytest.raises(ValueError):
        parse_month_key(bad)


def test_parse_month_key_accepts_single_digit_month():
    assert parse_month_key("2024-3") == (2024, 3)


def test_category_synonyms():
    assert category_synonyms("g") == {"g", "groceries"}
    assert category_synonyms("Bills") == {"bills", "b"}
    assert category_synonyms("coffee") == {"coffee"}


def test_canonical_category():
    assert canonical_category("G") == "groceries"
    assert canonical_category("coffee") == "coffee"


def test_is_all_and_is_bills():
    assert is_all(None) and is_all("") and is_all(" ALL ")
    assert not is_all("food")
    assert is_bills("b") and is_bills("bills")
    assert not is_bills("food")


def test_category_from_description():
    assert category_from_description("Groceries weekly shop") == "groceries"
    assert category_from_description("   ") == "uncategorized"
    assert category_from_description(None) == "uncategorized"
