"""Small descriptive-statistics helpers shared by the forecasters and detector."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .models import Band

Z_80 = 1.2816
Z_95 = 1.96


def mean_std(xs: Sequence[float] | np.ndarray) -> tuple[float, float]:
    """Mean and sample standard deviation (``n-1`` denominator, at least 1)."""

    arr = np.asarray(xs, dtype=float)
    n = arr.size
    if n == 0:
        return 0.0, 0.0
    return float(arr.mean()), float(arr.std(ddof=1 if n > 1 else 0))


def upper_median(xs: Sequence[float] | np.ndarray) -> float:
    """Middle element of the sorted values; the upper one for even lengths."""

    arr = np.asarray(xs, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.sort(arr)[arr.size // 2])


def confidence_bands(forecast: float, sigma: float) -> tuple[Band, Band]:
    """Symmetric 80% and 95% bands around ``forecast`` (normal approximation)."""

    return (
        (forecast - Z_80 * sigma, forecast + Z_80 * sigma),
        (forecast - Z_95 * sigma, forecast + Z_95 * sigma),
    )


__all__ = ["Z_80", "Z_95", "confidence_bands", "mean_std", "upper_median"]
