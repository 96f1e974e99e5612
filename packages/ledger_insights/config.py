"""Runtime settings read from the environment.

Entry points load a local ``.env`` with ``python-dotenv`` (never overriding
variables already set) and then call :func:`load_settings`. Library code
receives a :class:`Settings` instance explicitly and does not read the
environment on its own.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .forecast import normalize_method
from .models import MethodChoice

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///data/ledger.sqlite"
DEFAULT_BASE_CURRENCY = "JOD"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8090

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable application settings.

    Attributes
    ----------
    database_url:
        SQLAlchemy URL of the ledger database (``DATABASE_URL``).
    base_currency:
        Currency all amounts are normalised to (``BASE_CURRENCY``).
    forecasting_enabled / anomaly_detection_enabled:
        Administrative switches for the two query endpoints
        (``FORECASTING_ENABLED`` / ``ANOMALY_DETECTION_ENABLED``).
    forecast_method:
        Default model choice when a request omits ``method``
        (``FORECAST_METHOD``).
    auth_token:
        Static bearer token guarding the API (``DASHBOARD_AUTH_TOKEN``); empty
        disables the check.
    """

    database_url: str = DEFAULT_DATABASE_URL
    base_currency: str = DEFAULT_BASE_CURRENCY
    forecasting_enabled: bool = True
    forecast_method: MethodChoice = "auto"
    anomaly_detection_enabled: bool = True
    auth_token: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str | None = None


def load_settings(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    When ``dotenv`` is true and ``env`` is not given, ``.env`` in the current
    working directory is loaded first without overriding existing variables.
    """

    if env is None:
        if dotenv:
            load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
        env = os.environ

    return Settings(
        database_url=(env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip(),
        base_currency=(env.get("BASE_CURRENCY") or DEFAULT_BASE_CURRENCY).strip().upper(),
        forecasting_enabled=_env_flag(env, "FORECASTING_ENABLED", True),
        forecast_method=normalize_method(env.get("FORECAST_METHOD")),
        anomaly_detection_enabled=_env_flag(env, "ANOMALY_DETECTION_ENABLED", True),
        auth_token=(env.get("DASHBOARD_AUTH_TOKEN") or "").strip(),
        host=(env.get("DASHBOARD_HOST") or DEFAULT_HOST).strip(),
        port=_env_int(env, "DASHBOARD_PORT", DEFAULT_PORT),
        log_level=env.get("LEDGER_INSIGHTS_LOG_LEVEL"),
    )


__all__ = ["Settings", "load_settings"]
