"""Pydantic schemas for derived statistics and the report payloads."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TrendDirection = Literal["increasing", "decreasing", "stable", "insufficient_data"]
MarketType = Literal["seller", "slight_seller", "balanced", "slight_buyer", "buyer", "unknown"]
ConfidenceLevel = Literal["None", "Very Low", "Low", "Medium", "High", "Very High"]


class Granularity(str, Enum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Aggregation outputs
# ---------------------------------------------------------------------------


class PeriodStatistic(_Frozen):
    period: str
    label: str
    ordinal: int
    granularity: Granularity
    year: int
    sub_period: Optional[int] = None
    sale_count: int
    avg_close_price: Optional[float] = None
    median_close_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    avg_price_per_sqft: Optional[float] = None
    avg_dom: Optional[float] = None
    min_dom: Optional[int] = None
    max_dom: Optional[int] = None
    avg_sale_to_list_ratio: Optional[float] = None
    total_volume: float = 0.0
    price_change: float = 0.0
    price_change_pct: float = 0.0
    volume_change: int = 0


class TrendResult(_Frozen):
    direction: TrendDirection
    change_percent: Optional[float] = None


class AppreciationRate(_Frozen):
    period_start: str
    period_end: str
    start_price: float
    end_price: float
    total_change: float
    total_change_pct: float
    annual_appreciation_pct: float
    months_analyzed: int


class YearOverYear(_Frozen):
    current_year: int
    previous_year: int
    current_avg_price: Optional[float]
    previous_avg_price: Optional[float]
    price_change: Optional[float]
    price_change_pct: Optional[float]
    current_sales_count: int
    previous_sales_count: int
    volume_change: int
    volume_change_pct: Optional[float]
    current_avg_dom: Optional[float]
    previous_avg_dom: Optional[float]
    current_sp_lp_ratio: Optional[float]
    previous_sp_lp_ratio: Optional[float]


class SalesSummary(_Frozen):
    total_sales: int
    avg_close_price: Optional[float]
    median_close_price: Optional[float]
    min_price: Optional[float]
    max_price: Optional[float]
    avg_price_per_sqft: Optional[float]
    avg_dom: Optional[float]
    avg_sp_lp_ratio: Optional[float]
    total_volume: float
    monthly_sales_velocity: float
    earliest_sale: Optional[date]
    latest_sale: Optional[date]


class SparklinePoint(_Frozen):
    x: str
    y: float


# ---------------------------------------------------------------------------
# Market conditions report
# ---------------------------------------------------------------------------


class DomMonth(_Frozen):
    month: str
    month_label: str
    avg_dom: int
    min_dom: Optional[int]
    max_dom: Optional[int]
    sales_count: int


class DaysOnMarketSection(_Frozen):
    monthly: List[DomMonth] = Field(default_factory=list)
    average: Optional[int] = None
    trend: TrendResult
    trend_description: str
    sample_size: int = 0


class RatioMonth(_Frozen):
    month: str
    month_label: str
    ratio: float
    percentage: float
    sales_count: int


class ListToSaleSection(_Frozen):
    monthly: List[RatioMonth] = Field(default_factory=list)
    average: Optional[float] = None
    average_percentage: Optional[float] = None
    trend: TrendResult
    trend_description: str
    sample_size: int = 0


class PriceMonth(_Frozen):
    month: str
    month_label: str
    avg_price: float
    median_price: Optional[float]
    avg_price_per_sqft: Optional[float]
    sales_count: int


class PriceTrendSection(_Frozen):
    monthly: List[PriceMonth] = Field(default_factory=list)
    period_appreciation: Optional[float] = None
    annualized_appreciation: Optional[float] = None
    trend: TrendResult
    trend_description: str
    sample_size: int = 0


class InventorySnapshot(_Frozen):
    active_listings: int
    pending_listings: int
    avg_monthly_sales: Optional[float]
    months_of_supply: Optional[float]
    market_type: MarketType
    market_description: str
    absorption_rate: Optional[float]


class MarketHealthResult(_Frozen):
    score: int
    status: str
    status_color: str
    indicator: str
    factors: List[str] = Field(default_factory=list)
    summary: str


class Location(_Frozen):
    city: str
    state: str = ""
    property_type: str = "all"


class AnalysisPeriod(_Frozen):
    months: int
    start_date: date
    end_date: date


class MarketConditionsReport(_Frozen):
    location: Location
    analysis_period: AnalysisPeriod
    days_on_market: DaysOnMarketSection
    list_to_sale_ratio: ListToSaleSection
    inventory: InventorySnapshot
    price_trends: PriceTrendSection
    market_health: MarketHealthResult
    generated_at: str


# ---------------------------------------------------------------------------
# CMA confidence
# ---------------------------------------------------------------------------


class ConfidenceBreakdown(_Frozen):
    sample_size: int = Field(0, ge=0, le=25)
    data_completeness: int = Field(0, ge=0, le=20)
    market_stability: int = Field(0, ge=0, le=20)
    time_relevance: int = Field(0, ge=0, le=15)
    geographic_concentration: int = Field(0, ge=0, le=10)
    comparability_quality: int = Field(0, ge=0, le=10)

    def total(self) -> int:
        return (
            self.sample_size
            + self.data_completeness
            + self.market_stability
            + self.time_relevance
            + self.geographic_concentration
            + self.comparability_quality
        )


class Reliability(_Frozen):
    percentage: int
    description: str


class ConfidenceReport(_Frozen):
    score: float
    level: ConfidenceLevel
    breakdown: ConfidenceBreakdown
    recommendations: List[str] = Field(default_factory=list)
    reliability_percentage: Reliability


class WeightEntry(_Frozen):
    listing_id: Optional[str]
    address: Optional[str]
    grade: Optional[str]
    weight: float
    is_override: bool
    adjusted_price: float
    weighted_contribution: float


class EstimatedValue(_Frozen):
    low: float
    mid: float
    high: float
    mid_weighted: float
    mid_unweighted: float
    weight_difference: float
    weight_total: float
    weight_breakdown: List[WeightEntry] = Field(default_factory=list)


class CompsSummary(_Frozen):
    total_found: int
    top_comps_count: int
    avg_adjusted_price: float
    median_adjusted_price: float
    price_std_dev: float
    estimated_value: EstimatedValue
    avg_distance: float
    confidence: ConfidenceReport
