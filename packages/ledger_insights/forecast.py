"""Choose a forecasting model per series and wrap results for publication."""

from __future__ import annotations

from collections.abc import Sequence

from .logging_setup import get_logger
from .models import ForecastResult, MethodChoice, ModelFit, MonthKey, MonthlySeries
from .seasonal import SEASON_LENGTH, holt_winters_forecast
from .trend import linear_forecast

logger = get_logger(__name__)

SEASONAL_MIN_HISTORY = 2 * SEASON_LENGTH


def normalize_method(method: str | None) -> MethodChoice:
    """Lower-case ``method``; anything unrecognised behaves as ``"auto"``."""

    m = str(method or "auto").strip().lower()
    if m == "lr":
        return "lr"
    if m == "hw":
        return "hw"
    return "auto"


def select_forecast(series: Sequence[float], h: int = 1, method: str | None = "auto") -> ModelFit:
    """Run the requested model; ``auto`` prefers Holt-Winters with two years of history.

    In ``auto`` mode a Holt-Winters ``insufficient_history`` failure falls back
    to the linear trend for the same series.
    """

    choice = normalize_method(method)
    if choice == "lr":
        return linear_forecast(series, h)
    if choice == "hw":
        return holt_winters_forecast(series, h)

    if len(series) >= SEASONAL_MIN_HISTORY:
        fit = holt_winters_forecast(series, h)
    else:
        fit = linear_forecast(series, h)
    if not fit.ok and fit.reason == "insufficient_history":
        fit = linear_forecast(series, h)
    return fit


def forecast_result(
    category: str,
    months: Sequence[MonthKey],
    series: Sequence[float],
    h: int = 1,
    method: str | None = "auto",
) -> ForecastResult:
    fit = select_forecast(series, h, method)
    logger.debug(
        "forecast: category=%s method=%s ok=%s reason=%s",
        category,
        fit.method,
        fit.ok,
        fit.reason,
    )
    return ForecastResult.from_fit(fit, category=category, months=months, history=series, h=h)


def forecast_all(
    monthly: MonthlySeries,
    h: int = 1,
    method: str | None = "auto",
    *,
    categories: Sequence[str] | None = None,
) -> list[ForecastResult]:
    """Forecast each category independently.

    A failure in one category never aborts the batch: model failures are
    already data (``ok=False``), and an unexpected error is logged and
    reported as ``fit_failed`` for that category only. Categories requested
    but absent from ``monthly`` are forecast over an all-zero history.
    """

    targets = list(categories) if categories is not None else list(monthly)
    results: list[ForecastResult] = []
    for category in targets:
        series = monthly.get_or_zeros(category)
        try:
            results.append(forecast_result(category, monthly.months, series, h, method))
        except Exception:
            logger.exception("forecast: category %s failed unexpectedly", category)
            results.append(
                ForecastResult.from_fit(
                    ModelFit.failure("fit_failed", h=h),
                    category=category,
                    months=monthly.months,
                    history=series,
                    h=h,
                )
            )
    return results


__all__ = [
    "SEASONAL_MIN_HISTORY",
    "forecast_all",
    "forecast_result",
    "normalize_method",
    "select_forecast",
]
