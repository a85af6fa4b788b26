"""Compute market reports for a location from the listing repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, List, Optional, Sequence, Union

import pandas as pd

from ..config import DEFAULT_ANALYSIS_MONTHS, INVENTORY_WINDOW_MONTHS, MARKET_CACHE_TTL
from ..db.mappers import normalize_property_type
from ..db.repo import ListingRepository
from ..models.records import SaleRecord
from ..models.reports import (
    AppreciationRate,
    Granularity,
    InventorySnapshot,
    Location,
    MarketConditionsReport,
    PeriodStatistic,
    SalesSummary,
    YearOverYear,
)
from ..utils.caching import ResultCache, get_or_compute, make_cache_key
from ..utils.logging import get_logger, log_timing
from .aggregation import aggregate, summarize_sales
from .market_health import inventory_snapshot
from .reporting import SectionSeries, build_market_conditions_report
from .trends import appreciation_rate, year_over_year

LOGGER = get_logger("services.market_conditions")

MONTHS_PER_PERIOD = {Granularity.MONTH: 1, Granularity.QUARTER: 3, Granularity.YEAR: 12}
YOY_YEARS = 3


class MarketConditionsService:
    def __init__(
        self,
        repository: ListingRepository,
        cache: Optional[ResultCache] = None,
        cache_ttl: int = MARKET_CACHE_TTL,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.cache_ttl = cache_ttl
        self._clock = clock

    def get_market_conditions(
        self,
        city: str,
        state: str = "",
        property_type: str = "all",
        months: int = DEFAULT_ANALYSIS_MONTHS,
    ) -> MarketConditionsReport:
        property_type = normalize_property_type(property_type)
        key = make_cache_key("conditions", city=city, state=state, property_type=property_type, months=months)
        return get_or_compute(
            self.cache,
            key,
            self.cache_ttl,
            lambda: self._build_conditions(city, state, property_type, months),
        )

    def get_trends(
        self,
        city: str,
        state: str = "",
        property_type: str = "all",
        granularity: Union[Granularity, str] = Granularity.MONTH,
        periods: int = 24,
    ) -> List[PeriodStatistic]:
        granularity = Granularity(granularity)
        property_type = normalize_property_type(property_type)
        key = make_cache_key(
            "trends",
            city=city,
            state=state,
            property_type=property_type,
            granularity=granularity.value,
            periods=periods,
        )
        months = periods * MONTHS_PER_PERIOD[granularity]
        series = get_or_compute(
            self.cache,
            key,
            self.cache_ttl,
            lambda: aggregate(self._sales(city, state, property_type, months), granularity),
        )
        return list(series)

    def get_year_over_year(self, city: str, state: str = "", property_type: str = "all") -> List[YearOverYear]:
        yearly = self.get_trends(city, state, property_type, Granularity.YEAR, periods=YOY_YEARS)
        return year_over_year(yearly)

    def get_appreciation(
        self,
        city: str,
        state: str = "",
        property_type: str = "all",
        months: int = DEFAULT_ANALYSIS_MONTHS,
    ) -> Optional[AppreciationRate]:
        monthly = self.get_trends(city, state, property_type, Granularity.MONTH, periods=months)
        return appreciation_rate(monthly)

    def get_sales_summary(
        self,
        city: str,
        state: str = "",
        property_type: str = "all",
        months: int = DEFAULT_ANALYSIS_MONTHS,
    ) -> Optional[SalesSummary]:
        property_type = normalize_property_type(property_type)
        return summarize_sales(self._sales(city, state, property_type, months))

    def clear_cache(self) -> int:
        clear = getattr(self.cache, "clear", None)
        if clear is None:
            return 0
        return clear()

    # ------------------------------------------------------------------
    def _build_conditions(self, city: str, state: str, property_type: str, months: int) -> MarketConditionsReport:
        now = self._clock()
        today = now.date()
        analysis_start = _months_before(today, months)
        inventory_start = _months_before(today, INVENTORY_WINDOW_MONTHS)

        # One fetch covers both the analysis window and the inventory sales pace.
        with log_timing(LOGGER, "closed_sales_fetched", city=city, state=state, type=property_type):
            sales = self.repository.closed_sales(
                city, state, property_type, start=min(analysis_start, inventory_start), end=today
            )
        window_sales = [sale for sale in sales if sale.close_date and sale.close_date >= analysis_start]
        recent_sales = sum(1 for sale in sales if sale.close_date and sale.close_date >= inventory_start)

        sections = SectionSeries(
            dom=aggregate(dom_sample(window_sales)),
            ratio=aggregate(ratio_sample(window_sales)),
            price=aggregate(price_sample(window_sales)),
        )
        inventory = self._inventory(city, state, property_type, recent_sales)
        report = build_market_conditions_report(
            sections,
            inventory,
            Location(city=city, state=state, property_type=property_type),
            months,
            end_date=today,
            start_date=analysis_start,
            generated_at=now,
        )
        LOGGER.info(
            "market_conditions_built city=%s state=%s type=%s periods=%s sales=%s score=%s",
            city,
            state,
            property_type,
            len(sections.price),
            len(window_sales),
            report.market_health.score,
        )
        return report

    def _inventory(self, city: str, state: str, property_type: str, recent_sales: int) -> InventorySnapshot:
        active = self.repository.count_by_status("Active", city, state, property_type)
        pending = self.repository.count_by_status("Pending", city, state, property_type)
        return inventory_snapshot(active, pending, recent_sales, INVENTORY_WINDOW_MONTHS)

    def _sales(self, city: str, state: str, property_type: str, months: int):
        today = self._clock().date()
        return self.repository.closed_sales(city, state, property_type, start=_months_before(today, months), end=today)


def _months_before(day: date, months: int) -> date:
    return (pd.Timestamp(day) - pd.DateOffset(months=months)).date()


# ---------------------------------------------------------------------------
# Per-section samples
# ---------------------------------------------------------------------------

MAX_PLAUSIBLE_DOM = 365
MIN_SALE_TO_LIST = 0.5
MAX_SALE_TO_LIST = 1.5
MIN_PRICED_AREA = 500


def dom_sample(sales: Sequence[SaleRecord]) -> List[SaleRecord]:
    """Sales whose days on market is positive and under a year."""

    kept = [sale for sale in sales if 0 < (_days_on_market(sale) or 0) < MAX_PLAUSIBLE_DOM]
    _log_dropped("dom", sales, kept)
    return kept


def ratio_sample(sales: Sequence[SaleRecord]) -> List[SaleRecord]:
    """Sales with a list price and a sale-to-list ratio between 0.5 and 1.5."""

    kept = [
        sale
        for sale in sales
        if sale.list_price
        and sale.list_price > 0
        and sale.close_price is not None
        and MIN_SALE_TO_LIST <= sale.close_price / sale.list_price <= MAX_SALE_TO_LIST
    ]
    _log_dropped("ratio", sales, kept)
    return kept


def price_sample(sales: Sequence[SaleRecord]) -> List[SaleRecord]:
    """Sales with more than 500 sqft of living area."""

    kept = [sale for sale in sales if (sale.building_area_total or 0) > MIN_PRICED_AREA]
    _log_dropped("price", sales, kept)
    return kept


def _days_on_market(sale: SaleRecord) -> Optional[int]:
    # Same fallback as the aggregator: a zero DOM falls back to contract-to-close days.
    if sale.days_on_market:
        return sale.days_on_market
    if sale.close_date and sale.listing_contract_date:
        return (sale.close_date - sale.listing_contract_date).days
    return None


def _log_dropped(section: str, sales: Sequence[SaleRecord], kept: Sequence[SaleRecord]) -> None:
    if len(kept) < len(sales):
        LOGGER.debug("section_sample_filtered section=%s dropped=%s kept=%s", section, len(sales) - len(kept), len(kept))


__all__ = ["MarketConditionsService", "dom_sample", "price_sample", "ratio_sample"]
