from datetime import date

from market_insights.models.records import SaleRecord
from market_insights.models.reports import Granularity
from market_insights.services.aggregation import aggregate, median, summarize_sales


def _sale(close_date, price=500000.0, **overrides) -> SaleRecord:
    data = {
        "close_date": close_date,
        "close_price": price,
        "list_price": price,
        "building_area_total": 2000.0,
        "days_on_market": 20,
    }
    data.update(overrides)
    return SaleRecord(**data)


def test_monthly_counts_and_order():
    counts = {1: 3, 2: 5, 3: 1, 4: 4, 5: 2, 6: 6}
    records = [_sale(date(2024, month, day)) for month, n in counts.items() for day in range(1, n + 1)]
    records.reverse()

    stats = aggregate(records, Granularity.MONTH)

    assert [stat.period for stat in stats] == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
    assert [stat.sale_count for stat in stats] == list(counts.values())
    ordinals = [stat.ordinal for stat in stats]
    assert ordinals == sorted(ordinals)
    assert stats[0].label == "Jan 2024"


def test_months_order_across_year_boundary():
    stats = aggregate([_sale(date(2024, 1, 3)), _sale(date(2023, 12, 28))], "month")
    assert [stat.period for stat in stats] == ["2023-12", "2024-01"]


def test_quarter_grouping():
    records = [
        _sale(date(2024, 1, 10)),
        _sale(date(2024, 3, 31)),
        _sale(date(2024, 4, 1)),
        _sale(date(2024, 12, 5)),
    ]
    stats = aggregate(records, Granularity.QUARTER)
    assert [stat.period for stat in stats] == ["2024-Q1", "2024-Q2", "2024-Q4"]
    assert [stat.sale_count for stat in stats] == [2, 1, 1]
    assert [stat.sub_period for stat in stats] == [1, 2, 4]
    assert stats[0].label == "Q1 2024"


def test_year_grouping():
    stats = aggregate([_sale(date(2023, 5, 1)), _sale(date(2024, 2, 1)), _sale(date(2024, 9, 1))], Granularity.YEAR)
    assert [stat.period for stat in stats] == ["2023", "2024"]
    assert [stat.sale_count for stat in stats] == [1, 2]
    assert all(stat.sub_period is None for stat in stats)


def test_price_per_sqft_ignores_records_without_area():
    records = [
        _sale(date(2024, 1, 5), price=400000.0, building_area_total=2000.0),
        _sale(date(2024, 1, 6), price=600000.0, building_area_total=None),
        _sale(date(2024, 1, 7), price=300000.0, building_area_total=0.0),
    ]
    stat = aggregate(records)[0]
    assert stat.sale_count == 3
    assert stat.avg_price_per_sqft == 200.0
    assert stat.avg_close_price == 433333.33
    assert stat.median_close_price == 400000.0
    assert stat.min_price == 300000.0
    assert stat.max_price == 600000.0
    assert stat.total_volume == 1300000.0


def test_dom_falls_back_to_contract_dates():
    records = [
        _sale(date(2024, 2, 20), days_on_market=0, listing_contract_date=date(2024, 2, 10)),
        _sale(date(2024, 2, 21), days_on_market=30),
        _sale(date(2024, 2, 22), days_on_market=None),
    ]
    stat = aggregate(records)[0]
    assert stat.sale_count == 3
    assert stat.avg_dom == 20.0
    assert stat.min_dom == 10
    assert stat.max_dom == 30


def test_sale_to_list_ratio_skips_missing_list_price():
    records = [
        _sale(date(2024, 3, 1), price=510000.0, list_price=500000.0),
        _sale(date(2024, 3, 2), price=490000.0, list_price=500000.0),
        _sale(date(2024, 3, 3), price=450000.0, list_price=None),
    ]
    stat = aggregate(records)[0]
    assert stat.avg_sale_to_list_ratio == 100.0


def test_empty_input_returns_empty_series():
    assert aggregate([]) == []


def test_undated_records_are_skipped():
    stats = aggregate([_sale(None), _sale(date(2024, 5, 5))])
    assert len(stats) == 1
    assert stats[0].sale_count == 1


def test_period_over_period_changes():
    records = [
        _sale(date(2024, 1, 10), price=400000.0),
        _sale(date(2024, 2, 10), price=440000.0),
        _sale(date(2024, 2, 11), price=440000.0),
    ]
    jan, feb = aggregate(records)
    assert (jan.price_change, jan.price_change_pct, jan.volume_change) == (0.0, 0.0, 0)
    assert feb.price_change == 40000.0
    assert feb.price_change_pct == 10.0
    assert feb.volume_change == 1


def test_exact_median():
    assert median([3, 1, None, 2]) == 2.0
    assert median([1, 2, 3, 4]) == 2.5
    assert median([]) is None
    assert median([None]) is None


def test_summarize_sales():
    records = [
        _sale(date(2024, 1, 1), price=300000.0),
        _sale(date(2024, 1, 15), price=400000.0),
        _sale(date(2024, 1, 31), price=500000.0),
    ]
    summary = summarize_sales(records)
    assert summary.total_sales == 3
    assert summary.avg_close_price == 400000.0
    assert summary.median_close_price == 400000.0
    assert summary.total_volume == 1200000.0
    assert summary.earliest_sale == date(2024, 1, 1)
    assert summary.latest_sale == date(2024, 1, 31)
    assert summary.monthly_sales_velocity == 3.0
    assert summarize_sales([]) is None
