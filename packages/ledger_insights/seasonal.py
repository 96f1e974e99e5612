"""Additive Holt-Winters forecasting with a small smoothing-parameter grid.

The model keeps a level ``L``, trend ``T`` and additive seasonal component
``S`` with period ``m`` (12 for monthly data). Every combination of the
candidate smoothing parameters is fitted and the one with the lowest sum of
squared one-step-ahead residuals wins. Candidates are enumerated as the
Cartesian product ``alphas x betas x gammas`` (alpha outermost) and only a
strictly smaller SSE replaces the incumbent, so ties resolve to the earliest
combination and repeated runs pick the same parameters.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .logging_setup import get_logger
from .models import ModelFit
from .stats import confidence_bands

logger = get_logger(__name__)

SEASON_LENGTH = 12
MAX_HORIZON = 12
DEFAULT_ALPHAS: tuple[float, ...] = (0.2, 0.3, 0.4)
DEFAULT_BETAS: tuple[float, ...] = (0.1, 0.2)
DEFAULT_GAMMAS: tuple[float, ...] = (0.1, 0.2, 0.3)


@dataclass(frozen=True, slots=True)
class InitialState:
    level: float
    trend: float
    seasonals: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class HoltWintersRun:
    """One fitted parameterization."""

    alpha: float
    beta: float
    gamma: float
    sse: float
    sigma: float
    forecast: float
    fitted: tuple[float, ...]


def initial_state(y: Sequence[float] | np.ndarray, m: int = SEASON_LENGTH) -> InitialState:
    """Derive ``L0``, ``T0`` and zero-mean seasonal indices from complete seasons.

    Seasonal index ``i`` is the average deviation of position ``i`` from its
    season's mean. ``T0`` averages ``(y[i+m] - y[i]) / m`` over every valid
    ``i``.
    """

    arr = np.asarray(y, dtype=float)
    seasons = arr.size // m
    grid = arr[: seasons * m].reshape(seasons, m)
    raw = (grid - grid.mean(axis=1, keepdims=True)).mean(axis=0)
    seasonals = raw - raw.mean()

    steps = (arr[m:] - arr[:-m]) / m
    trend = float(steps.mean()) if steps.size else 0.0
    return InitialState(
        level=float(arr[0] - seasonals[0]),
        trend=trend,
        seasonals=tuple(float(v) for v in seasonals),
    )


def run_holt_winters(
    y: Sequence[float] | np.ndarray,
    alpha: float,
    beta: float,
    gamma: float,
    *,
    h: int = 1,
    m: int = SEASON_LENGTH,
    init: InitialState | None = None,
) -> HoltWintersRun:
    """Run the additive recursion for one parameterization and forecast ``h`` ahead."""

    obs = np.asarray(y, dtype=float)
    n = obs.size
    init = init or initial_state(obs, m)
    s0 = np.asarray(init.seasonals, dtype=float)

    level = np.zeros(n)
    trend = np.zeros(n)
    season = np.zeros(max(n, m))
    level[0] = init.level
    trend[0] = init.trend
    season[:m] = s0

    fitted = np.zeros(n)
    fitted[0] = level[0] + trend[0] + season[0]
    for t in range(1, n):
        prior = season[t - m] if t >= m else s0[t % m]
        level[t] = alpha * (obs[t] - prior) + (1 - alpha) * (level[t - 1] + trend[t - 1])
        trend[t] = beta * (level[t] - level[t - 1]) + (1 - beta) * trend[t - 1]
        season[t] = gamma * (obs[t] - level[t]) + (1 - gamma) * prior
        fitted[t] = level[t - 1] + trend[t - 1] + prior

    residuals = obs - fitted
    sse = float(residuals @ residuals)
    sigma = math.sqrt(sse / max(1, n - 3))

    s_idx = n - m + ((h - 1) % m)
    seasonal = season[s_idx] if s_idx >= 0 else s0[(h - 1) % m]
    forecast = float(level[n - 1] + h * trend[n - 1] + seasonal)
    return HoltWintersRun(
        alpha=alpha,
        beta=beta,
        gamma=gamma,
        sse=sse,
        sigma=sigma,
        forecast=forecast,
        fitted=tuple(float(v) for v in fitted),
    )


def holt_winters_forecast(
    series: Sequence[float],
    h: int = 1,
    alphas: Sequence[float] = DEFAULT_ALPHAS,
    betas: Sequence[float] = DEFAULT_BETAS,
    gammas: Sequence[float] = DEFAULT_GAMMAS,
    *,
    m: int = SEASON_LENGTH,
) -> ModelFit:
    """Grid-search additive Holt-Winters and forecast ``h`` months ahead.

    Needs at least two full seasons (``2*m`` points); ``h`` is clamped to
    ``[1, 12]``. Returns ``fit_failed`` when the parameter grid is empty.
    """

    y = np.asarray(series, dtype=float)
    n = y.size
    if n < 2 * m:
        return ModelFit.failure("insufficient_history", h=h)
    h = max(1, min(MAX_HORIZON, h))

    init = initial_state(y, m)
    best: HoltWintersRun | None = None
    for alpha, beta, gamma in itertools.product(alphas, betas, gammas):
        run = run_holt_winters(y, alpha, beta, gamma, h=h, m=m, init=init)
        if best is None or run.sse < best.sse:
            best = run

    if best is None:
        return ModelFit.failure("fit_failed", h=h)

    logger.debug(
        "hw: best alpha=%s beta=%s gamma=%s sse=%.4f over n=%d",
        best.alpha,
        best.beta,
        best.gamma,
        best.sse,
        n,
    )
    ci80, ci95 = confidence_bands(best.forecast, best.sigma)
    return ModelFit(
        ok=True,
        h=h,
        method="hw",
        forecast=best.forecast,
        ci80=ci80,
        ci95=ci95,
        sigma=best.sigma,
        params={"alpha": best.alpha, "beta": best.beta, "gamma": best.gamma, "sse": best.sse},
    )


__all__ = [
    "DEFAULT_ALPHAS",
    "DEFAULT_BETAS",
    "DEFAULT_GAMMAS",
    "HoltWintersRun",
    "InitialState",
    "MAX_HORIZON",
    "SEASON_LENGTH",
    "holt_winters_forecast",
    "initial_state",
    "run_holt_winters",
]
