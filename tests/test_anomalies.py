from datetime import UTC, datetime

import pytest

from ledger_insights.anomalies import BILLS_RULE_NOTE, detect_anomalies
from ledger_insights.months import last_n_month_keys

MONTHS = last_n_month_keys(14, now=datetime(2024, 2, 1, tzinfo=UTC))


def _alternating(lo: float, hi: float, n: int = 12) -> list[float]:
    return [lo if i % 2 == 0 else hi for i in range(n)]


def test_zero_variance_window_never_flags_zscore():
    series = {"food": [100.0] * 12 + [500.0, 100.0]}
    assert detect_anomalies(series, MONTHS, window=12, z_threshold=3.0) == []


def test_zscore_record():
    series = {"food": _alternating(90, 110) + [150.0, 100.0]}
    [rec] = detect_anomalies(series, MONTHS)

    assert rec.method == "zscore"
    assert rec.month == MONTHS[12]
    assert rec.actual == 150.0
    assert rec.expected == pytest.approx(100.0)
    assert rec.z == pytest.approx(50.0 / (1200.0 / 11.0) ** 0.5)
    assert "note" not in rec.to_dict()


def test_bills_rule_against_upper_median():
    series = {"bills": [50.0] * 12 + [95.0, 50.0]}
    [rec] = detect_anomalies(series, MONTHS)

    assert rec.method == "rule"
    assert rec.category == "bills"
    assert rec.expected == 50.0
    assert rec.z is None
    assert rec.note == BILLS_RULE_NOTE
    assert rec.to_dict()["z"] is None


def test_bills_rule_applies_to_code_spelling_too():
    series = {"b": [50.0] * 12 + [91.0, 50.0]}
    [rec] = detect_anomalies(series, MONTHS)
    assert rec.method == "rule"


def test_bills_rule_does_not_apply_to_other_categories():
    series = {"food": [50.0] * 12 + [95.0, 50.0]}
    assert detect_anomalies(series, MONTHS) == []


def test_both_checks_fire_for_same_month():
    # Upper median of six 40s and six 60s is 60; 120 >= 1.8 * 60.
    series = {"bills": _alternating(40, 60) + [120.0, 50.0]}
    recs = detect_anomalies(series, MONTHS)

    assert [r.method for r in recs] == ["zscore", "rule"]
    assert {r.month for r in recs} == {MONTHS[12]}
    assert recs[1].expected == 60.0


def test_records_sorted_by_month_across_categories():
    series = {
        "food": _alternating(90, 110) + [100.0, 200.0],
        "health": _alternating(90, 110) + [10.0, 100.0],
    }
    recs = detect_anomalies(series, MONTHS)
    assert [(r.month, r.category) for r in recs] == [
        (MONTHS[12], "health"),
        (MONTHS[13], "food"),
    ]


def test_series_shorter_than_window_yields_nothing():
    assert detect_anomalies({"bills": [10.0, 500.0]}, MONTHS[:2], window=12) == []


def test_all_zero_bills_history_never_fires_rule():
    assert detect_anomalies({"bills": [0.0] * 12 + [5.0, 0.0]}, MONTHS) == []


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        detect_anomalies({"food": [1.0]}, MONTHS[:1], window=0)


def test_two_years_flat_then_spike_has_no_records():
    months = last_n_month_keys(24, now=datetime(2024, 12, 1, tzinfo=UTC))
    series = {"food": [100.0] * 23 + [500.0]}
    assert detect_anomalies(series, months, window=12, z_threshold=3.0) == []
