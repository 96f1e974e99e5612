from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from helpers.db import seed_entries
from helpers.ledger import FakeLedger, monthly_records

from ledger_insights.config import Settings
from ledger_insights.web import create_app


def _client(store: FakeLedger, **settings) -> TestClient:
    @contextmanager
    def factory():
        yield store

    return TestClient(create_app(Settings(**settings), store_factory=factory))


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger(
        monthly_records("g", [10, 20, 30, 40, 50, 60, 70, 80])
        + monthly_records("bills", [50] * 12 + [95])
    )


def test_ping_needs_no_auth(ledger):
    client = _client(ledger, auth_token="s3cret")
    resp = client.get("/api/forecast/ping")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


@pytest.mark.parametrize("path", ["/api/forecast", "/api/anomalies"])
def test_auth_required_when_token_configured(ledger, path):
    client = _client(ledger, auth_token="s3cret")

    assert client.get(path).status_code == 401
    resp = client.get(path, headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}

    ok = client.get(path, headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200


def test_open_when_no_token(ledger):
    assert _client(ledger).get("/api/forecast").status_code == 200


def test_disabled_features_return_403(ledger):
    client = _client(ledger, forecasting_enabled=False, anomaly_detection_enabled=False)

    resp = client.get("/api/forecast")
    assert resp.status_code == 403
    assert resp.json() == {"error": "forecasting disabled"}

    resp = client.get("/api/anomalies")
    assert resp.status_code == 403
    assert resp.json() == {"error": "anomaly detection disabled"}


def test_storage_failure_returns_500():
    client = _client(FakeLedger(fail=RuntimeError("database unavailable")))

    resp = client.get("/api/forecast")
    assert resp.status_code == 500
    assert resp.json() == {"error": "database unavailable"}

    assert client.get("/api/anomalies").status_code == 500


def test_forecast_response_shapes(ledger):
    resp = _client(ledger).get("/api/forecast", params={"months": "8", "method": "lr"})
    body = resp.json()

    assert resp.status_code == 200
    assert body["unit"] == "JOD" and body["h"] == 1
    by_cat = {r["category"]: r for r in body["results"]}

    g = by_cat["g"]
    assert g["ok"] is True and g["method"] == "lr"
    assert g["forecast"] == pytest.approx(90.0)
    assert set(g) >= {"ci80", "ci95", "sigma", "a", "b"}
    assert "reason" not in g
    assert len(g["months"]) == 8


def test_failed_forecast_omits_forecast_fields(ledger):
    resp = _client(ledger).get("/api/forecast", params={"months": "3", "category": "g"})

    [result] = resp.json()["results"]
    assert result["category"] == "groceries"
    assert result["ok"] is False
    assert result["reason"] == "insufficient_history"
    assert not {"forecast", "ci80", "ci95", "method", "sigma"} & set(result)


def test_malformed_params_fall_back_to_defaults(ledger):
    resp = _client(ledger).get("/api/forecast", params={"months": "lots", "h": "-3"})
    body = resp.json()

    assert resp.status_code == 200
    assert body["h"] == 1
    assert all(len(r["months"]) == 24 for r in body["results"])


def test_anomalies_response_keeps_null_z(ledger):
    resp = _client(ledger).get("/api/anomalies", params={"category": "b", "months": "13"})

    assert resp.status_code == 200
    [rec] = resp.json()["anomalies"]
    assert rec["category"] == "bills"
    assert rec["method"] == "rule"
    assert rec["z"] is None
    assert rec["note"] == "bills>1.8x median"


def test_chat_id_query_alias(ledger):
    resp = _client(ledger).get("/api/forecast", params={"chatId": "someone-else"})
    assert resp.status_code == 200
    assert resp.json()["results"] == []


def test_end_to_end_against_sqlite(database_url):
    from datetime import UTC, datetime

    from ledger_insights.months import last_n_month_keys, month_bounds

    entries = []
    for i, key in enumerate(last_n_month_keys(6)):
        start, _ = month_bounds(key)
        entries.append(
            {"chat_id": "c1", "amount": str(100 + 10 * i), "description": "rent monthly",
             "created_at": start.replace(day=3, tzinfo=UTC)}
        )
    entries.append(
        {"chat_id": "c1", "amount": "999", "description": "rent refund", "code": "XFER",
         "created_at": datetime.now(UTC)}
    )
    seed_entries(database_url=database_url, entries=entries)

    client = TestClient(create_app(Settings(database_url=database_url)))
    resp = client.get("/api/forecast", params={"category": "r", "months": "6", "chatId": "c1"})

    assert resp.status_code == 200
    [result] = resp.json()["results"]
    assert result["category"] == "rent"
    assert result["history"] == [100.0, 110.0, 120.0, 130.0, 140.0, 150.0]
    assert result["forecast"] == pytest.approx(160.0)
