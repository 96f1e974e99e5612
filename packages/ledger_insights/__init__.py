"""ledger_insights: spending forecasts and anomaly detection over a ledger.

Public API
----------
- ``build_monthly_series``: aggregate transactions into monthly series.
- ``linear_forecast`` / ``holt_winters_forecast``: the two forecasting models.
- ``select_forecast`` / ``forecast_all``: per-category model selection.
- ``detect_anomalies``: z-score and bills-rule outlier detection.
- ``run_forecast`` / ``run_anomalies``: request-level operations used by the
  HTTP API (``ledger_insights.web``) and the CLI (``ledger_insights.cli``).
"""

from __future__ import annotations

from .anomalies import detect_anomalies
from .forecast import forecast_all, select_forecast
from .models import AnomalyRecord, ForecastResult, ModelFit, MonthlySeries, TransactionRecord
from .seasonal import holt_winters_forecast
from .series import build_monthly_series
from .service import run_anomalies, run_forecast
from .trend import linear_forecast

__all__ = [
    "AnomalyRecord",
    "ForecastResult",
    "ModelFit",
    "MonthlySeries",
    "TransactionRecord",
    "build_monthly_series",
    "detect_anomalies",
    "forecast_all",
    "holt_winters_forecast",
    "linear_forecast",
    "run_anomalies",
    "run_forecast",
    "select_forecast",
]
