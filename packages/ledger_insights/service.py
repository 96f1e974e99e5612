"""Request-level orchestration for forecasts and anomaly queries.

This layer turns loosely-typed query parameters into clamped, typed queries,
enforces the administrative feature switches, fetches the history window from
the ledger once, and delegates to the pure numeric modules. It is shared by the
HTTP API and the CLI.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol

from .anomalies import DEFAULT_WINDOW, DEFAULT_Z_THRESHOLD, detect_anomalies
from .categories import canonical_category, is_all
from .config import Settings
from .forecast import forecast_all, normalize_method
from .logging_setup import get_logger
from .models import ALL_CATEGORIES, MethodChoice, MonthlySeries, TransactionRecord
from .months import last_n_month_keys, month_bounds
from .series import build_monthly_series

logger = get_logger(__name__)

# Parameter bounds: (minimum, maximum, default)
FORECAST_MONTHS = (3, 60, 24)
FORECAST_HORIZON = (1, 12, 1)
ANOMALY_MONTHS = (6, 60, 24)
ANOMALY_WINDOW = (3, 24, DEFAULT_WINDOW)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class FeatureDisabledError(RuntimeError):
    """Raised when a query hits an administratively disabled feature."""


class LedgerReader(Protocol):
    def entries_between(
        self, chat_id: str | None, start: datetime, end: datetime
    ) -> list[TransactionRecord]: ...

    def fx_rate_on(self, currency: str, on_date: date) -> float | None: ...


# ---------------------------------------------------------------------------
# Parameter coercion
# ---------------------------------------------------------------------------


def clamp_int(raw: Any, lo: int, hi: int, default: int) -> int:
    """Parse the leading integer of ``raw`` and clamp to ``[lo, hi]``.

    ``"7.9"`` and ``"5abc"`` read as 7 and 5. Anything without a leading
    integer yields ``default`` (then clamped); nothing is rejected.
    """

    value = default
    if raw is not None and not isinstance(raw, bool):
        m = _LEADING_INT_RE.match(str(raw))
        if m:
            value = int(m.group(1))
    return max(lo, min(hi, value))


def parse_float(raw: Any, default: float) -> float:
    if raw is None:
        return default
    try:
        f = float(str(raw).strip())
    except ValueError:
        return default
    return f if math.isfinite(f) else default


def _norm_category(raw: Any) -> str:
    text = str(raw).strip().lower() if raw is not None else ""
    return text or ALL_CATEGORIES


def _norm_chat(raw: Any) -> str | None:
    text = str(raw).strip() if raw is not None else ""
    return text or None


@dataclass(frozen=True, slots=True)
class ForecastQuery:
    chat_id: str | None = None
    category: str = ALL_CATEGORIES
    months: int = FORECAST_MONTHS[2]
    method: MethodChoice = "auto"
    h: int = FORECAST_HORIZON[2]

    @classmethod
    def from_params(
        cls,
        *,
        chat_id: Any = None,
        category: Any = None,
        months: Any = None,
        method: Any = None,
        h: Any = None,
        default_method: str | None = "auto",
    ) -> ForecastQuery:
        return cls(
            chat_id=_norm_chat(chat_id),
            category=_norm_category(category),
            months=clamp_int(months, *FORECAST_MONTHS),
            method=normalize_method(method if method not in (None, "") else default_method),
            h=clamp_int(h, *FORECAST_HORIZON),
        )


@dataclass(frozen=True, slots=True)
class AnomalyQuery:
    chat_id: str | None = None
    category: str = ALL_CATEGORIES
    months: int = ANOMALY_MONTHS[2]
    window: int = ANOMALY_WINDOW[2]
    z: float = DEFAULT_Z_THRESHOLD

    @classmethod
    def from_params(
        cls,
        *,
        chat_id: Any = None,
        category: Any = None,
        months: Any = None,
        window: Any = None,
        z: Any = None,
    ) -> AnomalyQuery:
        return cls(
            chat_id=_norm_chat(chat_id),
            category=_norm_category(category),
            months=clamp_int(months, *ANOMALY_MONTHS),
            window=clamp_int(window, *ANOMALY_WINDOW),
            z=parse_float(z, DEFAULT_Z_THRESHOLD),
        )


# ---------------------------------------------------------------------------
# Series from storage
# ---------------------------------------------------------------------------


def build_series_from_store(
    store: LedgerReader,
    months: int,
    *,
    chat_id: str | None = None,
    category: str | None = None,
    base_currency: str = "JOD",
    now: datetime | None = None,
) -> MonthlySeries:
    """Fetch the whole window once, then aggregate with :func:`build_monthly_series`."""

    keys = last_n_month_keys(months, now)
    start, _ = month_bounds(keys[0])
    _, end = month_bounds(keys[-1])
    transactions = store.entries_between(chat_id, start, end)
    logger.debug(
        "series: fetched %d transaction(s) for chat=%s window=%s..%s",
        len(transactions),
        chat_id or "*",
        keys[0],
        keys[-1],
    )
    return build_monthly_series(
        transactions,
        months,
        category,
        now=now,
        base_currency=base_currency,
        rate_lookup=store.fx_rate_on,
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def run_forecast(
    store: LedgerReader,
    settings: Settings,
    query: ForecastQuery,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Forecast every requested category; returns ``{unit, h, results}``."""

    if not settings.forecasting_enabled:
        raise FeatureDisabledError("forecasting disabled")

    category = None if is_all(query.category) else query.category
    monthly = build_series_from_store(
        store,
        query.months,
        chat_id=query.chat_id,
        category=category,
        base_currency=settings.base_currency,
        now=now,
    )
    targets = [canonical_category(category)] if category is not None else None
    results = forecast_all(monthly, query.h, query.method, categories=targets)
    logger.info(
        "forecast: %d categor%s, method=%s h=%d months=%d",
        len(results),
        "y" if len(results) == 1 else "ies",
        query.method,
        query.h,
        query.months,
    )
    return {
        "unit": settings.base_currency,
        "h": query.h,
        "results": [r.to_dict() for r in results],
    }


def run_anomalies(
    store: LedgerReader,
    settings: Settings,
    query: AnomalyQuery,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Detect anomalies for every requested category; returns ``{unit, anomalies}``."""

    if not settings.anomaly_detection_enabled:
        raise FeatureDisabledError("anomaly detection disabled")

    category = None if is_all(query.category) else query.category
    monthly = build_series_from_store(
        store,
        query.months,
        chat_id=query.chat_id,
        category=category,
        base_currency=settings.base_currency,
        now=now,
    )
    records = detect_anomalies(monthly, monthly.months, query.window, query.z)
    logger.info(
        "anomalies: %d record(s) across %d categor%s (window=%d z=%s)",
        len(records),
        len(monthly),
        "y" if len(monthly) == 1 else "ies",
        query.window,
        query.z,
    )
    return {"unit": settings.base_currency, "anomalies": [r.to_dict() for r in records]}


__all__ = [
    "ANOMALY_MONTHS",
    "ANOMALY_WINDOW",
    "AnomalyQuery",
    "FORECAST_HORIZON",
    "FORECAST_MONTHS",
    "FeatureDisabledError",
    "ForecastQuery",
    "LedgerReader",
    "build_series_from_store",
    "clamp_int",
    "parse_float",
    "run_anomalies",
    "run_forecast",
]
