"""Group closed sales into calendar periods and compute per-period statistics."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..models.records import SaleRecord
from ..models.reports import Granularity, PeriodStatistic, SalesSummary
from ..utils.logging import get_logger

LOGGER = get_logger("services.aggregation")

_NUMERIC_COLUMNS = ["close_price", "list_price", "building_area_total", "days_on_market"]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def median(values: Iterable[Optional[float]]) -> Optional[float]:
    """Exact median of the non-null values, or ``None`` when there are none."""

    cleaned = [float(v) for v in values if v is not None and not math.isnan(float(v))]
    if not cleaned:
        return None
    return float(np.median(cleaned))


def records_frame(records: Sequence[SaleRecord]) -> pd.DataFrame:
    """Build a typed frame with the derived per-record metrics."""

    frame = pd.DataFrame([record.model_dump() for record in records], columns=list(SaleRecord.model_fields))
    frame["close_date"] = pd.to_datetime(frame["close_date"], errors="coerce")
    frame["listing_contract_date"] = pd.to_datetime(frame["listing_contract_date"], errors="coerce")
    for col in _NUMERIC_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")

    area = frame["building_area_total"]
    frame["price_per_sqft"] = (frame["close_price"] / area).where(area > 0)

    # A zero DOM means the feed did not record it; fall back to contract-to-close days.
    reported_dom = frame["days_on_market"].where(frame["days_on_market"] != 0)
    elapsed = (frame["close_date"] - frame["listing_contract_date"]).dt.days
    frame["dom"] = reported_dom.fillna(elapsed)

    list_price = frame["list_price"]
    frame["sp_lp_ratio"] = (frame["close_price"] / list_price * 100).where(list_price > 0)
    return frame


def aggregate(
    records: Sequence[SaleRecord],
    granularity: Union[Granularity, str] = Granularity.MONTH,
) -> List[PeriodStatistic]:
    """Aggregate pre-filtered sale records into chronologically ordered periods."""

    granularity = Granularity(granularity)
    if not records:
        return []

    frame = records_frame(records)
    undated = frame["close_date"].isna()
    if undated.any():
        LOGGER.debug("aggregate_skipped_records count=%s reason=no_close_date", int(undated.sum()))
        frame = frame[~undated]
    if frame.empty:
        return []

    frame = _assign_periods(frame, granularity)

    stats: List[PeriodStatistic] = []
    previous: Optional[PeriodStatistic] = None
    for ordinal, group in frame.groupby("_ordinal", sort=True):
        stat = _period_statistic(int(ordinal), group, granularity, previous)
        stats.append(stat)
        previous = stat

    LOGGER.debug("aggregate_complete granularity=%s periods=%s records=%s", granularity.value, len(stats), len(frame))
    return stats


def summarize_sales(records: Sequence[SaleRecord]) -> Optional[SalesSummary]:
    """Overall statistics for a batch of closed sales, or ``None`` when empty."""

    if not records:
        return None
    frame = records_frame(records)

    dates = frame["close_date"].dropna()
    earliest = dates.min().date() if not dates.empty else None
    latest = dates.max().date() if not dates.empty else None
    velocity = 0.0
    if earliest and latest:
        months_span = (latest - earliest).days / 30
        if months_span > 0:
            velocity = len(frame) / months_span

    return SalesSummary(
        total_sales=len(frame),
        avg_close_price=_rounded_mean(frame["close_price"]),
        median_close_price=_round(median(frame["close_price"].tolist())),
        min_price=_round(_extreme(frame["close_price"], "min")),
        max_price=_round(_extreme(frame["close_price"], "max")),
        avg_price_per_sqft=_rounded_mean(frame["price_per_sqft"]),
        avg_dom=_rounded_mean(frame["dom"], digits=1),
        avg_sp_lp_ratio=_rounded_mean(frame["sp_lp_ratio"]),
        total_volume=round(float(frame["close_price"].fillna(0).sum()), 2),
        monthly_sales_velocity=round(velocity, 1),
        earliest_sale=earliest,
        latest_sale=latest,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _assign_periods(frame: pd.DataFrame, granularity: Granularity) -> pd.DataFrame:
    frame = frame.copy()
    year = frame["close_date"].dt.year.astype(int)
    month = frame["close_date"].dt.month.astype(int)
    frame["_year"] = year
    if granularity is Granularity.MONTH:
        frame["_sub"] = month
        frame["_ordinal"] = year * 12 + month - 1
    elif granularity is Granularity.QUARTER:
        quarter = (month - 1) // 3 + 1
        frame["_sub"] = quarter
        frame["_ordinal"] = year * 4 + quarter - 1
    else:
        frame["_sub"] = 0
        frame["_ordinal"] = year
    return frame


def _period_labels(year: int, sub: int, granularity: Granularity) -> tuple[str, str]:
    if granularity is Granularity.MONTH:
        return f"{year}-{sub:02d}", date(year, sub, 1).strftime("%b %Y")
    if granularity is Granularity.QUARTER:
        return f"{year}-Q{sub}", f"Q{sub} {year}"
    return str(year), str(year)


def _period_statistic(
    ordinal: int,
    group: pd.DataFrame,
    granularity: Granularity,
    previous: Optional[PeriodStatistic],
) -> PeriodStatistic:
    year = int(group["_year"].iloc[0])
    sub = int(group["_sub"].iloc[0])
    period, label = _period_labels(year, sub, granularity)

    prices = group["close_price"]
    dom = group["dom"]
    avg_price = _rounded_mean(prices)
    sale_count = len(group)

    price_change = 0.0
    price_change_pct = 0.0
    volume_change = 0
    if previous is not None:
        volume_change = sale_count - previous.sale_count
        if avg_price is not None and previous.avg_close_price:
            price_change = round(avg_price - previous.avg_close_price, 2)
            price_change_pct = round(price_change / previous.avg_close_price * 100, 2)

    min_dom = _extreme(dom, "min")
    max_dom = _extreme(dom, "max")
    return PeriodStatistic(
        period=period,
        label=label,
        ordinal=ordinal,
        granularity=granularity,
        year=year,
        sub_period=None if granularity is Granularity.YEAR else sub,
        sale_count=sale_count,
        avg_close_price=avg_price,
        median_close_price=_round(median(prices.tolist())),
        min_price=_round(_extreme(prices, "min")),
        max_price=_round(_extreme(prices, "max")),
        avg_price_per_sqft=_rounded_mean(group["price_per_sqft"]),
        avg_dom=_rounded_mean(dom, digits=1),
        min_dom=int(min_dom) if min_dom is not None else None,
        max_dom=int(max_dom) if max_dom is not None else None,
        avg_sale_to_list_ratio=_rounded_mean(group["sp_lp_ratio"]),
        total_volume=round(float(prices.fillna(0).sum()), 2),
        price_change=price_change,
        price_change_pct=price_change_pct,
        volume_change=volume_change,
    )


def _rounded_mean(series: pd.Series, digits: int = 2) -> Optional[float]:
    values = series.dropna()
    if values.empty:
        return None
    return round(float(values.mean()), digits)


def _extreme(series: pd.Series, how: str) -> Optional[float]:
    values = series.dropna()
    if values.empty:
        return None
    return float(values.min() if how == "min" else values.max())


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    if value is None:
        return None
    return round(value, digits)


__all__ = ["aggregate", "median", "records_frame", "summarize_sales"]
