import pytest

from market_insights.models.reports import Granularity, PeriodStatistic
from market_insights.services.trends import appreciation_rate, classify, sparkline, year_over_year


def _series(values, field="avg_close_price"):
    return [
        PeriodStatistic(
            period=f"2024-{idx + 1:02d}",
            label=f"M{idx + 1}",
            ordinal=idx,
            granularity=Granularity.MONTH,
            year=2024,
            sub_period=idx + 1,
            sale_count=1,
            **{field: value},
        )
        for idx, value in enumerate(values)
    ]


def _year(year, price, count, dom=30.0, ratio=98.0):
    return PeriodStatistic(
        period=str(year),
        label=str(year),
        ordinal=year,
        granularity=Granularity.YEAR,
        year=year,
        sale_count=count,
        avg_close_price=price,
        avg_dom=dom,
        avg_sale_to_list_ratio=ratio,
    )


@pytest.mark.parametrize("values", [[], [100.0], [100.0, 200.0], [100.0, 200.0, 900.0]])
def test_short_series_is_insufficient(values):
    trend = classify(_series(values), "avg_close_price")
    assert trend.direction == "insufficient_data"
    assert trend.change_percent is None


def test_ten_percent_rise_is_increasing():
    trend = classify(_series([100.0, 100.0, 110.0, 110.0]), "avg_close_price")
    assert trend.direction == "increasing"
    assert trend.change_percent == pytest.approx(10.0)


def test_decline_is_decreasing():
    trend = classify(_series([100.0, 100.0, 90.0, 90.0]), "avg_close_price")
    assert trend.direction == "decreasing"
    assert trend.change_percent == pytest.approx(-10.0)


@pytest.mark.parametrize("second", [104.0, 105.0, 95.0])
def test_changes_within_band_are_stable(second):
    trend = classify(_series([100.0, 100.0, second, second]), "avg_close_price")
    assert trend.direction == "stable"


def test_odd_length_puts_extra_period_in_second_half():
    trend = classify(_series([100.0, 100.0, 120.0, 120.0, 120.0]), "avg_close_price")
    assert trend.change_percent == pytest.approx(20.0)


def test_zero_first_half_is_stable():
    trend = classify(_series([0.0, 0.0, 50.0, 50.0]), "avg_close_price")
    assert trend.direction == "stable"
    assert trend.change_percent == 0


def test_missing_values_are_ignored():
    trend = classify(_series([100.0, None, 100.0, 110.0, 110.0]), "avg_close_price")
    assert trend.change_percent == pytest.approx(10.0)
    assert classify(_series([100.0, None, None, 110.0]), "avg_close_price").direction == "insufficient_data"


def test_callable_metric():
    series = _series([10.0, 10.0, 20.0, 20.0], field="avg_dom")
    trend = classify(series, lambda stat: stat.avg_dom)
    assert trend.direction == "increasing"
    assert trend.change_percent == pytest.approx(100.0)


def test_appreciation_rate_over_twelve_months():
    prices = [400000.0 + step * 80000.0 / 11 for step in range(12)]
    rate = appreciation_rate(_series(prices))
    assert rate.total_change_pct == pytest.approx(20.0)
    assert rate.annual_appreciation_pct == pytest.approx(20.0)
    assert rate.months_analyzed == 12
    assert rate.period_start == "2024-01"
    assert rate.period_end == "2024-12"


def test_appreciation_rate_needs_two_periods():
    assert appreciation_rate(_series([400000.0])) is None


def test_year_over_year_newest_first():
    comparisons = year_over_year([_year(2022, 400000.0, 80), _year(2023, 420000.0, 100), _year(2024, 462000.0, 90)])
    assert [(c.current_year, c.previous_year) for c in comparisons] == [(2024, 2023), (2023, 2022)]
    latest = comparisons[0]
    assert latest.price_change == 42000.0
    assert latest.price_change_pct == 10.0
    assert latest.volume_change == -10
    assert latest.volume_change_pct == -10.0


def test_year_over_year_needs_two_years():
    assert year_over_year([_year(2024, 400000.0, 10)]) == []


def test_sparkline_plots_missing_values_as_zero():
    points = sparkline(_series([1.0, None]), "avg_close_price")
    assert [(p.x, p.y) for p in points] == [("2024-01", 1.0), ("2024-02", 0.0)]
