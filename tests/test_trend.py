import pytest

from ledger_insights.trend import MIN_HISTORY, linear_forecast


def test_linear_forecast_projects_exact_line():
    series = [10 + 2 * i for i in range(12)]
    fit = linear_forecast(series, h=1)

    assert fit.ok and fit.method == "lr"
    assert fit.forecast == pytest.approx(34.0)
    assert fit.sigma == pytest.approx(0.0, abs=1e-9)
    assert fit.params["a"] == pytest.approx(10.0)
    assert fit.params["b"] == pytest.approx(2.0)
    # Zero residuals collapse both bands onto the point forecast.
    assert fit.ci80 == pytest.approx((34.0, 34.0))
    assert fit.ci95 == pytest.approx((34.0, 34.0))


def test_linear_forecast_horizon_extends_the_line():
    series = [10 + 2 * i for i in range(12)]
    assert linear_forecast(series, h=3).forecast == pytest.approx(38.0)


def test_linear_forecast_needs_six_points():
    fit = linear_forecast([1.0] * (MIN_HISTORY - 1))
    assert not fit.ok
    assert fit.reason == "insufficient_history"
    assert fit.forecast is None and fit.ci80 is None and fit.ci95 is None


def test_linear_forecast_bands_are_nested_and_centred():
    series = [100, 120, 90, 130, 110, 95, 125, 105]
    fit = linear_forecast(series)

    assert fit.ok and fit.sigma > 0
    lo80, hi80 = fit.ci80
    lo95, hi95 = fit.ci95
    assert lo95 < lo80 < fit.forecast < hi80 < hi95
    assert fit.forecast - lo80 == pytest.approx(hi80 - fit.forecast)
    assert hi80 - fit.forecast == pytest.approx(1.2816 * fit.sigma)
    assert hi95 - fit.forecast == pytest.approx(1.96 * fit.sigma)


def test_constant_series_is_a_flat_forecast():
    fit = linear_forecast([42.0] * 8)
    assert fit.ok
    assert fit.forecast == pytest.approx(42.0)
    assert fit.params["b"] == pytest.approx(0.0)
