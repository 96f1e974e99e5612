"""Base-currency conversion with an explicit record of how each amount was obtained.

A conversion takes one of three paths:

- ``Exact``: the amount was already in the base currency, or a base amount was
  frozen on the entry at ingestion time.
- ``Converted``: the most recent rate on or before the transaction date was
  applied.
- ``DefaultedToOne``: no usable rate exists; the raw amount is used with a
  multiplier of 1. This is a degraded but defined outcome, not an error.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from .models import TransactionRecord
from .months import as_utc

type RateLookup = Callable[[str, date], float | None]
"""``(currency, on_date) -> rate`` returning the latest rate on or before ``on_date``."""


@dataclass(frozen=True, slots=True)
class Exact:
    amount: float


@dataclass(frozen=True, slots=True)
class Converted:
    amount: float
    rate: float


@dataclass(frozen=True, slots=True)
class DefaultedToOne:
    amount: float


type FxConversion = Exact | Converted | DefaultedToOne


def to_base(
    tx: TransactionRecord,
    *,
    base_currency: str,
    rate_lookup: RateLookup | None = None,
) -> FxConversion:
    """Convert ``tx.amount`` into ``base_currency`` units."""

    if tx.base_amount is not None and math.isfinite(tx.base_amount):
        return Exact(float(tx.base_amount))

    amount = float(tx.amount)
    currency = (tx.currency or base_currency).strip().upper()
    if currency == base_currency.strip().upper():
        return Exact(amount)

    rate = rate_lookup(currency, as_utc(tx.created_at).date()) if rate_lookup else None
    # A zero or missing rate cannot be applied.
    if not rate:
        return DefaultedToOne(amount)
    return Converted(amount * rate, float(rate))


__all__ = ["Converted", "DefaultedToOne", "Exact", "FxConversion", "RateLookup", "to_base"]
