"""Pydantic response models for the HTTP API.

These mirror the dictionaries produced by ``ForecastResult.to_dict()`` and
``AnomalyRecord.to_dict()``. Optional fields are omitted from responses when
unset (the API serializes with ``exclude_unset``), so a failed forecast has no
``forecast``/``ci80``/``ci95`` keys at all while a rule anomaly keeps an
explicit ``"z": null``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ForecastResultOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    months: list[str]
    history: list[float]
    ok: bool
    h: int
    method: Literal["lr", "hw"] | None = None
    forecast: float | None = None
    ci80: tuple[float, float] | None = None
    ci95: tuple[float, float] | None = None
    sigma: float | None = None
    reason: Literal["insufficient_history", "degenerate_series", "fit_failed"] | None = None
    # Linear trend diagnostics
    a: float | None = None
    b: float | None = None
    # Holt-Winters diagnostics
    alpha: float | None = None
    beta: float | None = None
    gamma: float | None = None
    sse: float | None = None


class ForecastResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    unit: str
    h: int
    results: list[ForecastResultOut]


class AnomalyOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    month: str
    actual: float
    expected: float
    z: float | None
    method: Literal["zscore", "rule"]
    note: str | None = None


class AnomalyResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    unit: str
    anomalies: list[AnomalyOut]


class ErrorOut(BaseModel):
    error: str


__all__ = [
    "AnomalyOut",
    "AnomalyResponse",
    "ErrorOut",
    "ForecastResponse",
    "ForecastResultOut",
]
