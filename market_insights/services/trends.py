"""Trend direction inference and period-over-period comparisons."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Union

from ..models.reports import (
    AppreciationRate,
    Granularity,
    PeriodStatistic,
    SparklinePoint,
    TrendResult,
    YearOverYear,
)

MetricSelector = Union[str, Callable[[PeriodStatistic], Optional[float]]]

MIN_TREND_PERIODS = 4
STABLE_BAND_PCT = 5.0


def classify(series: Sequence[PeriodStatistic], metric: MetricSelector) -> TrendResult:
    """Compare the first and second half of ``series`` for one metric.

    Periods without a value for the metric are ignored. Fewer than four usable
    periods is reported as ``insufficient_data``.
    """

    values = [v for v in (_metric_value(stat, metric) for stat in series) if v is not None]
    if len(values) < MIN_TREND_PERIODS:
        return TrendResult(direction="insufficient_data", change_percent=None)

    midpoint = len(values) // 2
    first_half = values[:midpoint]
    second_half = values[midpoint:]
    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)

    if first_avg == 0:
        return TrendResult(direction="stable", change_percent=0.0)

    change = round((second_avg - first_avg) / first_avg * 100, 2)
    direction = "stable"
    if change > STABLE_BAND_PCT:
        direction = "increasing"
    elif change < -STABLE_BAND_PCT:
        direction = "decreasing"
    return TrendResult(direction=direction, change_percent=change)


def appreciation_rate(series: Sequence[PeriodStatistic]) -> Optional[AppreciationRate]:
    """Change in average price between the oldest and newest period.

    The annual figure scales by the number of periods in ``series``, so it is
    only meaningful for monthly series.
    """

    priced = [stat for stat in series if stat.avg_close_price]
    if len(priced) < 2:
        return None
    oldest, newest = priced[0], priced[-1]
    change = newest.avg_close_price - oldest.avg_close_price
    change_pct = change / oldest.avg_close_price * 100
    months = len(priced)
    return AppreciationRate(
        period_start=oldest.period,
        period_end=newest.period,
        start_price=oldest.avg_close_price,
        end_price=newest.avg_close_price,
        total_change=round(change, 2),
        total_change_pct=round(change_pct, 2),
        annual_appreciation_pct=round(change_pct / months * 12, 2),
        months_analyzed=months,
    )


def year_over_year(series: Sequence[PeriodStatistic]) -> List[YearOverYear]:
    """Consecutive-year comparisons, newest year first.

    Expects a yearly series; returns an empty list when fewer than two years
    are available.
    """

    years = sorted(
        (stat for stat in series if stat.granularity is Granularity.YEAR),
        key=lambda stat: stat.ordinal,
        reverse=True,
    )
    comparisons: List[YearOverYear] = []
    for current, previous in zip(years, years[1:]):
        price_change = None
        price_change_pct = None
        if current.avg_close_price is not None and previous.avg_close_price:
            price_change = round(current.avg_close_price - previous.avg_close_price, 2)
            price_change_pct = round(price_change / previous.avg_close_price * 100, 2)
        volume_change = current.sale_count - previous.sale_count
        volume_change_pct = None
        if previous.sale_count:
            volume_change_pct = round(volume_change / previous.sale_count * 100, 2)
        comparisons.append(
            YearOverYear(
                current_year=current.year,
                previous_year=previous.year,
                current_avg_price=current.avg_close_price,
                previous_avg_price=previous.avg_close_price,
                price_change=price_change,
                price_change_pct=price_change_pct,
                current_sales_count=current.sale_count,
                previous_sales_count=previous.sale_count,
                volume_change=volume_change,
                volume_change_pct=volume_change_pct,
                current_avg_dom=current.avg_dom,
                previous_avg_dom=previous.avg_dom,
                current_sp_lp_ratio=current.avg_sale_to_list_ratio,
                previous_sp_lp_ratio=previous.avg_sale_to_list_ratio,
            )
        )
    return comparisons


def sparkline(series: Sequence[PeriodStatistic], metric: MetricSelector) -> List[SparklinePoint]:
    """Chart-ready points; missing values plot as zero."""

    points = []
    for stat in series:
        value = _metric_value(stat, metric)
        points.append(SparklinePoint(x=stat.period, y=value if value is not None else 0.0))
    return points


def _metric_value(stat: PeriodStatistic, metric: MetricSelector) -> Optional[float]:
    value = metric(stat) if callable(metric) else getattr(stat, metric)
    if value is None:
        return None
    return float(value)


__all__ = [
    "MIN_TREND_PERIODS",
    "STABLE_BAND_PCT",
    "appreciation_rate",
    "classify",
    "sparkline",
    "year_over_year",
]
