from datetime import date, datetime

import pytest

from market_insights.models.reports import Granularity, Location, PeriodStatistic
from market_insights.services.market_health import inventory_snapshot
from market_insights.services.reporting import (
    analysis_start,
    build_dom_section,
    build_market_conditions_report,
    build_price_section,
    build_ratio_section,
    price_trend_description,
)


def _month(idx, price=None, dom=None, ratio=None, count=2, ppsf=None):
    month = idx % 12 + 1
    year = 2024 + idx // 12
    return PeriodStatistic(
        period=f"{year}-{month:02d}",
        label=f"{month}/{year}",
        ordinal=year * 12 + month - 1,
        granularity=Granularity.MONTH,
        year=year,
        sub_period=month,
        sale_count=count,
        avg_close_price=price,
        avg_price_per_sqft=ppsf,
        avg_dom=dom,
        avg_sale_to_list_ratio=ratio,
    )


def test_twelve_month_appreciation():
    prices = [400000.0 + step * 80000.0 / 11 for step in range(12)]
    section = build_price_section([_month(i, price=p) for i, p in enumerate(prices)], months=12)
    assert section.period_appreciation == pytest.approx(20.0)
    assert section.annualized_appreciation == pytest.approx(20.0)
    assert section.trend.direction == "increasing"
    assert section.sample_size == 12
    assert section.trend_description == "Prices are appreciating rapidly at 20.0% annually."


def test_sparse_series_annualizes_by_window():
    series = [_month(0, price=400000.0), _month(5, price=420000.0)]
    section = build_price_section(series, months=24)
    assert section.period_appreciation == pytest.approx(5.0)
    assert section.annualized_appreciation == pytest.approx(2.5)
    assert section.trend.direction == "insufficient_data"


def test_price_rows_are_rounded():
    section = build_price_section([_month(0, price=400123.6, ppsf=211.7)], months=12)
    row = section.monthly[0]
    assert row.avg_price == 400124
    assert row.avg_price_per_sqft == 212


def test_single_period_has_no_appreciation():
    section = build_price_section([_month(0, price=400000.0)], months=12)
    assert section.period_appreciation is None
    assert section.annualized_appreciation is None
    assert section.trend_description == "Insufficient data to determine price trends."


def test_unchanged_price_has_no_appreciation():
    section = build_price_section([_month(0, price=400000.0), _month(1, price=400000.0)], months=12)
    assert section.period_appreciation is None
    assert section.trend_description == "Insufficient data to determine price trends."


def test_dom_average_is_weighted_by_sales():
    series = [_month(0, dom=10.0, count=3), _month(1, dom=40.0, count=1), _month(2)]
    section = build_dom_section(series)
    assert section.average == 18
    assert section.sample_size == 4
    assert [row.avg_dom for row in section.monthly] == [10, 40]


def test_ratio_section_converts_percentages():
    series = [_month(0, ratio=102.0, count=1), _month(1, ratio=98.0, count=3)]
    section = build_ratio_section(series)
    assert section.monthly[0].ratio == 1.02
    assert section.monthly[0].percentage == 102.0
    assert section.average == pytest.approx(0.99)
    assert section.average_percentage == 99.0
    assert section.trend_description == "Sellers are achieving close to their asking price."


def test_ratio_section_without_data():
    section = build_ratio_section([_month(0)])
    assert section.average is None
    assert section.trend_description == "Insufficient data to determine list-to-sale ratio."


@pytest.mark.parametrize(
    "annualized, prefix",
    [
        (None, "Insufficient data"),
        (12.0, "Prices are appreciating rapidly"),
        (7.0, "Prices are appreciating at a healthy rate"),
        (2.0, "Prices are showing modest growth"),
        (-2.0, "Prices are relatively flat"),
        (-7.0, "Prices are declining at 7.0%"),
    ],
)
def test_price_trend_description(annualized, prefix):
    assert price_trend_description(annualized).startswith(prefix)


def test_report_assembles_sections():
    series = [_month(i, price=500000.0, dom=25.0, ratio=99.0) for i in range(6)]
    inventory = inventory_snapshot(active_listings=20, pending_listings=2, recent_closed_sales=6)
    report = build_market_conditions_report(
        series,
        inventory,
        Location(city="Salem", state="MA"),
        months=6,
        end_date=date(2024, 7, 1),
        generated_at=datetime(2024, 7, 1, 9, 30),
    )
    assert report.analysis_period.start_date == analysis_start(date(2024, 7, 1), 6)
    assert report.analysis_period.start_date == date(2024, 1, 3)
    assert report.generated_at == "2024-07-01 09:30:00"
    assert report.inventory.months_of_supply == 10.0
    assert report.market_health.score == 50
    assert report.market_health.factors == ["Fast-moving market (low DOM)", "High inventory (buyer's market)"]
