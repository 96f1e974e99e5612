"""Aggregate transactions into fixed-length monthly series per category.

The builder is pure apart from the wall clock: pass ``now`` to pin the month
window (tests do). Transfers and income never count towards spending.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .categories import canonical_category, category_synonyms, is_all
from .fx import DefaultedToOne, RateLookup, to_base
from .logging_setup import get_logger
from .models import MonthlySeries, TransactionRecord
from .months import as_utc, last_n_month_keys, month_key

logger = get_logger(__name__)

DEFAULT_BASE_CURRENCY = "JOD"


def build_monthly_series(
    transactions: Iterable[TransactionRecord],
    months: int,
    category: str | None = None,
    *,
    now: datetime | None = None,
    base_currency: str = DEFAULT_BASE_CURRENCY,
    rate_lookup: RateLookup | None = None,
) -> MonthlySeries:
    """Build base-currency monthly totals for the trailing ``months`` months.

    Parameters
    ----------
    transactions:
        Records to aggregate. Records outside the window are ignored.
    months:
        Number of trailing months, ending with the current UTC month.
    category:
        ``None``/``"all"`` builds one series per observed category (created on
        first sight). Otherwise only records matching the category or its
        code/name synonym count, and a single series keyed by the canonical
        name is always present, even if all zeros.
    rate_lookup:
        FX rate source for non-base currencies; see :mod:`ledger_insights.fx`.
    """

    keys = last_n_month_keys(months, now)
    index_of = {k: i for i, k in enumerate(keys)}

    filter_set = None if is_all(category) else category_synonyms(category)
    key_out = None if filter_set is None else canonical_category(str(category))

    buckets: dict[str, list[float]] = {}
    if key_out is not None:
        buckets[key_out] = [0.0] * months

    defaulted = 0
    # Chronological order keeps on-demand category creation deterministic.
    for tx in sorted(transactions, key=lambda t: as_utc(t.created_at)):
        idx = index_of.get(month_key(tx.created_at))
        if idx is None:
            continue
        if tx.is_transfer or tx.is_income:
            continue
        cat = str(tx.category or "").lower()
        if filter_set is not None and cat not in filter_set:
            continue

        conversion = to_base(tx, base_currency=base_currency, rate_lookup=rate_lookup)
        if isinstance(conversion, DefaultedToOne):
            defaulted += 1

        bucket_key = key_out if key_out is not None else cat
        bucket = buckets.get(bucket_key)
        if bucket is None:
            bucket = buckets[bucket_key] = [0.0] * months
        bucket[idx] += conversion.amount

    if defaulted:
        logger.debug("fx: %d transaction(s) used a default rate of 1", defaulted)

    return MonthlySeries(keys, buckets)


__all__ = ["DEFAULT_BASE_CURRENCY", "build_monthly_series"]
