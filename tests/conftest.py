"""Pytest configuration shared by the test suite.

Puts the workspace ``packages/`` and ``libs/db/src`` directories on
``sys.path`` so tests run from a plain checkout, and keeps every test away
from the developer's environment: ledger variables are cleared and each test
that needs a database gets its own SQLite file under ``tmp_path``.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
for _p in (_ROOT / "libs" / "db" / "src", _ROOT / "packages", _ROOT):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

from helpers.db import bootstrap_sqlite_db  # noqa: E402

_LEDGER_ENV = (
    "DATABASE_URL",
    "BASE_CURRENCY",
    "FORECASTING_ENABLED",
    "FORECAST_METHOD",
    "ANOMALY_DETECTION_ENABLED",
    "DASHBOARD_AUTH_TOKEN",
    "DASHBOARD_HOST",
    "DASHBOARD_PORT",
    "LEDGER_INSIGHTS_LOG_LEVEL",
)

# Fixed "current month" for tests that build trailing windows.
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _LEDGER_ENV:
        monkeypatch.delenv(name, raising=False)
    # load_settings() reads .env from the working directory.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite")
