"""Flag outlier months per category.

Two independent checks run over each month that has a full trailing window:

- ``zscore``: ``|actual - mean| / std >= z_threshold`` using the window's
  mean and sample standard deviation. A window with zero variance yields no
  record at all, however far the actual value is from the mean.
- ``rule``: for the bills category only, ``actual >= 1.8 * median`` of the
  window (when the median is positive).

Both may fire for the same month.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from .categories import is_bills
from .models import AnomalyRecord, MonthKey
from .stats import mean_std, upper_median

BILLS_SPIKE_RATIO = 1.8
BILLS_RULE_NOTE = "bills>1.8x median"
DEFAULT_WINDOW = 12
DEFAULT_Z_THRESHOLD = 3.0


def detect_anomalies(
    series_by_category: Mapping[str, Sequence[float]],
    month_keys: Sequence[MonthKey],
    window: int = DEFAULT_WINDOW,
    z_threshold: float = DEFAULT_Z_THRESHOLD,
) -> list[AnomalyRecord]:
    """Return anomaly records sorted by month (ascending, stable)."""

    if window < 1:
        raise ValueError("window must be a positive integer")

    records: list[AnomalyRecord] = []
    for category, series in series_by_category.items():
        values = np.asarray(series, dtype=float)
        bills = is_bills(category)
        for i in range(window, min(values.size, len(month_keys))):
            hist = values[i - window : i]
            actual = float(values[i])
            mu, std = mean_std(hist)
            if std > 0:
                z = (actual - mu) / std
                if abs(z) >= z_threshold:
                    records.append(
                        AnomalyRecord(
                            category=category,
                            month=month_keys[i],
                            actual=actual,
                            expected=mu,
                            z=z,
                            method="zscore",
                        )
                    )
            if bills:
                median = upper_median(hist)
                if median > 0 and actual >= BILLS_SPIKE_RATIO * median:
                    records.append(
                        AnomalyRecord(
                            category=category,
                            month=month_keys[i],
                            actual=actual,
                            expected=median,
                            z=None,
                            method="rule",
                            note=BILLS_RULE_NOTE,
                        )
                    )

    records.sort(key=lambda r: r.month)
    return records


__all__ = [
    "BILLS_RULE_NOTE",
    "BILLS_SPIKE_RATIO",
    "DEFAULT_WINDOW",
    "DEFAULT_Z_THRESHOLD",
    "detect_anomalies",
]
