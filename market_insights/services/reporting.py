"""Assemble market conditions report sections from period series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..models.reports import (
    AnalysisPeriod,
    DaysOnMarketSection,
    DomMonth,
    InventorySnapshot,
    ListToSaleSection,
    Location,
    MarketConditionsReport,
    PeriodStatistic,
    PriceMonth,
    PriceTrendSection,
    RatioMonth,
    TrendResult,
)
from .market_health import score_market_health
from .trends import classify


def build_dom_section(series: Sequence[PeriodStatistic]) -> DaysOnMarketSection:
    periods = [stat for stat in series if stat.avg_dom is not None]
    monthly = [
        DomMonth(
            month=stat.period,
            month_label=stat.label,
            avg_dom=int(round(stat.avg_dom)),
            min_dom=stat.min_dom,
            max_dom=stat.max_dom,
            sales_count=stat.sale_count,
        )
        for stat in periods
    ]
    total_sales = sum(stat.sale_count for stat in periods)
    weighted = sum(stat.avg_dom * stat.sale_count for stat in periods)
    trend = classify(periods, "avg_dom")
    return DaysOnMarketSection(
        monthly=monthly,
        average=int(round(weighted / total_sales)) if total_sales > 0 else None,
        trend=trend,
        trend_description=dom_trend_description(trend),
        sample_size=total_sales,
    )


def build_ratio_section(series: Sequence[PeriodStatistic]) -> ListToSaleSection:
    periods = [stat for stat in series if stat.avg_sale_to_list_ratio is not None]
    monthly = []
    weighted = 0.0
    total_sales = 0
    for stat in periods:
        ratio = stat.avg_sale_to_list_ratio / 100
        monthly.append(
            RatioMonth(
                month=stat.period,
                month_label=stat.label,
                ratio=round(ratio, 4),
                percentage=round(ratio * 100, 1),
                sales_count=stat.sale_count,
            )
        )
        weighted += ratio * stat.sale_count
        total_sales += stat.sale_count

    average = weighted / total_sales if total_sales > 0 else None
    trend = classify(periods, "avg_sale_to_list_ratio")
    return ListToSaleSection(
        monthly=monthly,
        average=round(average, 4) if average is not None else None,
        average_percentage=round(average * 100, 1) if average is not None else None,
        trend=trend,
        trend_description=ratio_trend_description(average, trend),
        sample_size=total_sales,
    )


def build_price_section(series: Sequence[PeriodStatistic], months: int) -> PriceTrendSection:
    """Price rows plus appreciation from the first to the last period.

    ``months`` is the length of the analysis window and annualizes the change,
    so sparse series are not inflated by missing months. Appreciation is null
    with fewer than two priced periods or when the price did not move.
    """

    periods = [stat for stat in series if stat.avg_close_price is not None]
    monthly = [
        PriceMonth(
            month=stat.period,
            month_label=stat.label,
            avg_price=round(stat.avg_close_price),
            median_price=stat.median_close_price,
            avg_price_per_sqft=round(stat.avg_price_per_sqft) if stat.avg_price_per_sqft is not None else None,
            sales_count=stat.sale_count,
        )
        for stat in periods
    ]

    appreciation = None
    annualized = None
    if len(periods) >= 2:
        first_price = periods[0].avg_close_price
        last_price = periods[-1].avg_close_price
        if first_price > 0 and last_price > 0 and last_price != first_price:
            appreciation = (last_price - first_price) / first_price * 100
            if months > 0:
                annualized = appreciation / months * 12

    trend = classify(periods, "avg_close_price")
    return PriceTrendSection(
        monthly=monthly,
        period_appreciation=round(appreciation, 2) if appreciation is not None else None,
        annualized_appreciation=round(annualized, 2) if annualized is not None else None,
        trend=trend,
        trend_description=price_trend_description(annualized),
        sample_size=len(periods),
    )


@dataclass(frozen=True)
class SectionSeries:
    """Monthly series per report section, each aggregated from its own sample."""

    dom: Sequence[PeriodStatistic]
    ratio: Sequence[PeriodStatistic]
    price: Sequence[PeriodStatistic]

    @classmethod
    def shared(cls, series: Sequence[PeriodStatistic]) -> "SectionSeries":
        return cls(dom=series, ratio=series, price=series)


def build_market_conditions_report(
    series: Union[Sequence[PeriodStatistic], SectionSeries],
    inventory: InventorySnapshot,
    location: Location,
    months: int,
    end_date: date,
    start_date: Optional[date] = None,
    generated_at: Optional[datetime] = None,
) -> MarketConditionsReport:
    """Combine the monthly series and inventory into the full report.

    A plain series feeds every section; a ``SectionSeries`` gives each section
    its own.
    """

    sections = series if isinstance(series, SectionSeries) else SectionSeries.shared(series)
    dom = build_dom_section(sections.dom)
    ratio = build_ratio_section(sections.ratio)
    price = build_price_section(sections.price, months)
    health = score_market_health(dom, ratio, inventory, price)
    generated_at = generated_at or datetime.now()
    return MarketConditionsReport(
        location=location,
        analysis_period=AnalysisPeriod(
            months=months,
            start_date=start_date or analysis_start(end_date, months),
            end_date=end_date,
        ),
        days_on_market=dom,
        list_to_sale_ratio=ratio,
        inventory=inventory,
        price_trends=price,
        market_health=health,
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M:%S"),
    )


def analysis_start(end_date: date, months: int) -> date:
    """Window start using 30-day months."""

    return date.fromordinal(end_date.toordinal() - months * 30)


# ---------------------------------------------------------------------------
# Narrative text
# ---------------------------------------------------------------------------


def dom_trend_description(trend: TrendResult) -> str:
    if trend.direction == "increasing":
        return "Properties are taking longer to sell than earlier in the period."
    if trend.direction == "decreasing":
        return "Properties are selling faster than earlier in the period."
    return "Time on market has remained relatively stable."


def ratio_trend_description(average_ratio: Optional[float], trend: TrendResult) -> str:
    if average_ratio is None:
        return "Insufficient data to determine list-to-sale ratio."
    if average_ratio >= 1.0:
        base = "Sellers are getting full asking price or higher on average."
    elif average_ratio >= 0.97:
        base = "Sellers are achieving close to their asking price."
    else:
        base = "Buyers have negotiating power, with sales below list price."

    if trend.direction == "increasing":
        base += " This ratio is trending upward."
    elif trend.direction == "decreasing":
        base += " This ratio is trending downward."
    return base


def price_trend_description(annualized: Optional[float]) -> str:
    if annualized is None:
        return "Insufficient data to determine price trends."
    if annualized > 10:
        return f"Prices are appreciating rapidly at {round(annualized, 1)}% annually."
    if annualized > 5:
        return f"Prices are appreciating at a healthy rate of {round(annualized, 1)}% annually."
    if annualized > 0:
        return f"Prices are showing modest growth at {round(annualized, 1)}% annually."
    if annualized > -5:
        return f"Prices are relatively flat with slight decline of {round(abs(annualized), 1)}% annually."
    return f"Prices are declining at {round(abs(annualized), 1)}% annually."


__all__ = [
    "SectionSeries",
    "analysis_start",
    "build_dom_section",
    "build_market_conditions_report",
    "build_price_section",
    "build_ratio_section",
]
