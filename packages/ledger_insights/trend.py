"""Ordinary least-squares linear trend forecast."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .models import ModelFit
from .stats import confidence_bands

MIN_HISTORY = 6


def linear_forecast(series: Sequence[float], h: int = 1) -> ModelFit:
    """Fit ``y = a + b*x`` over ``x = 0..n-1`` and project ``h`` months ahead.

    The forecast is the fitted line at ``x = n - 1 + h``. Bands use the
    residual standard error ``sqrt(SSE / max(1, n - 2))`` with fixed normal
    multipliers; no correction for parameter uncertainty is applied.
    """

    y = np.asarray(series, dtype=float)
    n = y.size
    if n < MIN_HISTORY:
        return ModelFit.failure("insufficient_history", h=h)

    x = np.arange(n, dtype=float)
    denom = n * float(x @ x) - float(x.sum()) ** 2
    if denom == 0:
        return ModelFit.failure("degenerate_series", h=h)

    b, a = (float(c) for c in np.polyfit(x, y, 1))

    residuals = y - (a + b * x)
    sse = float(residuals @ residuals)
    sigma = math.sqrt(sse / max(1, n - 2))

    forecast = a + b * (n - 1 + h)
    ci80, ci95 = confidence_bands(forecast, sigma)
    return ModelFit(
        ok=True,
        h=h,
        method="lr",
        forecast=forecast,
        ci80=ci80,
        ci95=ci95,
        sigma=sigma,
        params={"a": a, "b": b},
    )


__all__ = ["MIN_HISTORY", "linear_forecast"]
