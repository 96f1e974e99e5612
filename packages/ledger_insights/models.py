"""Data models and type aliases for ``ledger_insights``.

Everything here is immutable and created fresh per request. The numeric
modules (``trend``, ``seasonal``, ``anomalies``) exchange these types rather
than loose dictionaries; ``to_dict()`` helpers produce the public JSON shapes
used by the HTTP API and the CLI.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------

type MonthKey = str
"""A calendar month formatted as ``"YYYY-MM"``."""

type ForecastMethod = Literal["lr", "hw"]
type MethodChoice = Literal["auto", "lr", "hw"]
type FailureReason = Literal["insufficient_history", "degenerate_series", "fit_failed"]
type AnomalyMethod = Literal["zscore", "rule"]
type Band = tuple[float, float]

ALL_CATEGORIES = "all"
"""Reserved category value meaning "no category filter"."""


# ---------------------------------------------------------------------------
# Collaborator input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """A categorized ledger transaction as delivered by the storage collaborator.

    Attributes
    ----------
    category:
        Lower-case category label (a one-letter code or a full name).
    amount:
        Amount in ``currency``. Sign conventions are the ledger's own; values
        are summed as-is.
    created_at:
        Timestamp of the transaction. Naive values are interpreted as UTC.
    currency:
        ISO code; ``None`` means the ledger's base currency.
    base_amount:
        Optional amount already converted to the base currency at ingestion.
    """

    category: str
    amount: float
    created_at: datetime
    currency: str | None = None
    is_transfer: bool = False
    is_income: bool = False
    base_amount: float | None = None
    chat_id: str | None = None


# ---------------------------------------------------------------------------
# Monthly series
# ---------------------------------------------------------------------------


class MonthlySeries(Mapping[str, tuple[float, ...]]):
    """Category → fixed-length monthly amounts, aligned to ``months``.

    Construction validates that every series has exactly ``len(months)``
    points and that month keys are strictly increasing. Instances are
    read-only mappings; category order is insertion order.
    """

    __slots__ = ("_months", "_series")

    def __init__(
        self,
        months: Sequence[MonthKey],
        series: Mapping[str, Sequence[float]] | None = None,
    ) -> None:
        keys = tuple(months)
        for prev, cur in zip(keys, keys[1:], strict=False):
            if not prev < cur:
                raise ValueError(f"month keys must be strictly increasing: {prev!r} >= {cur!r}")
        frozen: dict[str, tuple[float, ...]] = {}
        for category, values in (series or {}).items():
            points = tuple(float(v) for v in values)
            if len(points) != len(keys):
                raise ValueError(
                    f"series for category {category!r} has {len(points)} points; "
                    f"expected {len(keys)}"
                )
            frozen[category] = points
        self._months = keys
        self._series = frozen

    @property
    def months(self) -> tuple[MonthKey, ...]:
        return self._months

    def __getitem__(self, category: str) -> tuple[float, ...]:
        return self._series[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    def get_or_zeros(self, category: str) -> tuple[float, ...]:
        """Return the series for ``category`` or an all-zero series of the same length."""

        return self._series.get(category, (0.0,) * len(self._months))

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"MonthlySeries(months={list(self._months)!r}, categories={list(self._series)!r})"


# ---------------------------------------------------------------------------
# Forecasting
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModelFit:
    """Outcome of a single forecasting model over one series.

    ``params`` carries model diagnostics: ``a``/``b`` for the linear trend and
    ``alpha``/``beta``/``gamma``/``sse`` for Holt-Winters.
    """

    ok: bool
    h: int
    method: ForecastMethod | None = None
    forecast: float | None = None
    ci80: Band | None = None
    ci95: Band | None = None
    sigma: float | None = None
    reason: FailureReason | None = None
    params: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def failure(cls, reason: FailureReason, *, h: int) -> ModelFit:
        return cls(ok=False, h=h, reason=reason)


@dataclass(frozen=True, slots=True)
class ForecastResult:
    """Public forecast record for one category.

    Invariants: a failed result carries ``reason`` and no forecast or bands;
    a successful one carries both bands, centred on ``forecast``, with
    ``ci80`` inside ``ci95``.
    """

    category: str
    months: tuple[MonthKey, ...]
    history: tuple[float, ...]
    h: int
    ok: bool
    method: ForecastMethod | None = None
    forecast: float | None = None
    ci80: Band | None = None
    ci95: Band | None = None
    sigma: float | None = None
    reason: FailureReason | None = None
    params: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.ok:
            if self.forecast is None or self.ci80 is None or self.ci95 is None:
                raise ValueError("successful forecast requires forecast, ci80 and ci95")
            if not (self.ci95[0] <= self.ci80[0] <= self.ci80[1] <= self.ci95[1]):
                raise ValueError("ci80 must lie within ci95")
        else:
            if self.reason is None:
                raise ValueError("failed forecast requires a reason")
            if self.forecast is not None or self.ci80 is not None or self.ci95 is not None:
                raise ValueError("failed forecast must not carry forecast or bands")

    @classmethod
    def from_fit(
        cls,
        fit: ModelFit,
        *,
        category: str,
        months: Sequence[MonthKey],
        history: Sequence[float],
        h: int,
    ) -> ForecastResult:
        return cls(
            category=category,
            months=tuple(months),
            history=tuple(float(v) for v in history),
            h=h,
            ok=fit.ok,
            method=fit.method,
            forecast=fit.forecast,
            ci80=fit.ci80,
            ci95=fit.ci95,
            sigma=fit.sigma,
            reason=fit.reason,
            params=dict(fit.params),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "category": self.category,
            "months": list(self.months),
            "history": list(self.history),
            "ok": self.ok,
            "h": self.h,
        }
        if not self.ok:
            out["reason"] = self.reason
            return out
        out["method"] = self.method
        out["forecast"] = self.forecast
        out["ci80"] = list(self.ci80 or ())
        out["ci95"] = list(self.ci95 or ())
        out["sigma"] = self.sigma
        out.update(self.params)
        return out


# ---------------------------------------------------------------------------
# Anomalies
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AnomalyRecord:
    """A flagged (category, month) pair.

    ``z`` is ``None`` for rule-based records; ``expected`` is the rolling mean
    for z-score records and the rolling median for rule records.
    """

    category: str
    month: MonthKey
    actual: float
    expected: float
    z: float | None
    method: AnomalyMethod
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "category": self.category,
            "month": self.month,
            "actual": self.actual,
            "expected": self.expected,
            "z": self.z,
            "method": self.method,
        }
        if self.note is not None:
            out["note"] = self.note
        return out


__all__ = [
    "ALL_CATEGORIES",
    "AnomalyMethod",
    "AnomalyRecord",
    "Band",
    "FailureReason",
    "ForecastMethod",
    "ForecastResult",
    "MethodChoice",
    "ModelFit",
    "MonthKey",
    "MonthlySeries",
    "TransactionRecord",
]
