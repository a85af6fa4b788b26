"""Confidence scoring for a CMA estimate based on its comparable set."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..models.records import CRITICAL_FIELDS, ComparableProperty
from ..models.reports import ConfidenceBreakdown, ConfidenceReport, Reliability
from ..utils.logging import get_logger

LOGGER = get_logger("services.confidence")


@dataclass(frozen=True)
class FactorScore:
    """Score for one confidence factor plus an optional remediation hint."""

    score: int
    recommendation: str = ""


# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------

FHA_MINIMUM_COMPS = 3
RECENT_SALE_DAYS = 90
TOP_GRADES = ("A", "B")

CONFIDENCE_LEVELS: Tuple[Tuple[int, str], ...] = (
    (85, "Very High"),
    (70, "High"),
    (55, "Medium"),
    (40, "Low"),
)

RELIABILITY_DESCRIPTIONS: Tuple[Tuple[int, str], ...] = (
    (85, "Highly reliable estimate backed by strong comparable data"),
    (70, "Reliable estimate suitable for pricing decisions"),
    (55, "Moderately reliable estimate; review alongside local market knowledge"),
    (40, "Limited reliability; treat the estimate as a rough guide"),
)
UNRELIABLE_DESCRIPTION = "Unreliable estimate; there is not enough comparable data"

OVERALL_RECOMMENDATIONS: Tuple[Tuple[int, str], ...] = (
    (70, "This valuation is well supported by comparable sales and can be used with confidence."),
    (55, "This valuation provides reasonable guidance; confirm it against local market knowledge before pricing."),
    (40, "Use this valuation with caution; the comparable data has notable gaps."),
)
INSUFFICIENT_DATA_RECOMMENDATION = (
    "Insufficient comparable data for a reliable valuation. "
    "Consider a professional appraisal or broadening the search criteria."
)

NO_COMPARABLES = "No comparable properties found"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_confidence(
    comparables: Sequence[ComparableProperty],
    as_of: Optional[date] = None,
) -> ConfidenceReport:
    """Score how far a CMA estimate can be trusted, from 0 to 100."""

    if not comparables:
        return ConfidenceReport(
            score=0.0,
            level="None",
            breakdown=ConfidenceBreakdown(),
            recommendations=[NO_COMPARABLES],
            reliability_percentage=Reliability(percentage=0, description="No comparable data available"),
        )

    as_of = as_of or date.today()
    factors = {
        "sample_size": score_sample_size(len(comparables)),
        "data_completeness": score_data_completeness(completeness_percent(comparables)),
        "market_stability": score_market_stability(
            coefficient_of_variation([comp.adjusted_price for comp in comparables])
        ),
        "time_relevance": score_time_relevance(recent_sales_percent(comparables, as_of)),
        "geographic_concentration": score_geographic_concentration(average_distance(comparables)),
        "comparability_quality": score_comparability_quality(top_grade_percent(comparables)),
    }
    breakdown = ConfidenceBreakdown(**{name: factor.score for name, factor in factors.items()})
    total = breakdown.total()

    recommendations: List[str] = [overall_recommendation(total)]
    recommendations.extend(factor.recommendation for factor in factors.values() if factor.recommendation)

    LOGGER.debug("confidence_scored comps=%s score=%s", len(comparables), total)
    return ConfidenceReport(
        score=round(float(total), 1),
        level=confidence_level(total),
        breakdown=breakdown,
        recommendations=recommendations,
        reliability_percentage=Reliability(
            percentage=int(round(total)),
            description=_first_reached(total, RELIABILITY_DESCRIPTIONS, UNRELIABLE_DESCRIPTION),
        ),
    )


def confidence_level(score: float) -> str:
    return _first_reached(score, CONFIDENCE_LEVELS, "Very Low")


def overall_recommendation(score: float) -> str:
    return _first_reached(score, OVERALL_RECOMMENDATIONS, INSUFFICIENT_DATA_RECOMMENDATION)


# ---------------------------------------------------------------------------
# Factor scorers
# ---------------------------------------------------------------------------


def score_sample_size(count: int) -> FactorScore:
    if count >= 10:
        return FactorScore(25)
    if count >= 7:
        return FactorScore(20)
    if count >= 5:
        return FactorScore(15, "Add more comparables if available; 7 or more give a stronger estimate.")
    if count >= FHA_MINIMUM_COMPS:
        return FactorScore(
            10,
            f"Only {count} comparables found. Widen the search radius or date range to reach at least 5.",
        )
    return FactorScore(
        0,
        f"Critical: only {count} comparable(s) found, below the FHA minimum of {FHA_MINIMUM_COMPS}. "
        "Expand the search criteria before relying on this estimate.",
    )


def score_data_completeness(percent: float) -> FactorScore:
    if percent >= 95:
        return FactorScore(20)
    if percent >= 85:
        return FactorScore(16)
    if percent >= 75:
        return FactorScore(12)
    if percent >= 60:
        return FactorScore(8, "Several comparables are missing key details; verify size, rooms and year built.")
    return FactorScore(4, "Comparable data is largely incomplete; fill in missing property details before relying on it.")


def score_market_stability(cv: Optional[float]) -> FactorScore:
    if cv is None:
        return FactorScore(10)
    if cv < 5:
        return FactorScore(20)
    if cv < 10:
        return FactorScore(16)
    if cv < 15:
        return FactorScore(12)
    if cv < 25:
        return FactorScore(8, "Adjusted prices vary noticeably; review outliers among the comparables.")
    return FactorScore(4, "Adjusted prices vary widely; remove outliers or tighten the comparable criteria.")


def score_time_relevance(percent: float) -> FactorScore:
    if percent >= 80:
        return FactorScore(15)
    if percent >= 60:
        return FactorScore(12)
    if percent >= 40:
        return FactorScore(9)
    if percent >= 20:
        return FactorScore(6, f"Few comparables sold in the last {RECENT_SALE_DAYS} days; look for more recent sales.")
    return FactorScore(
        3,
        f"Almost no comparables sold in the last {RECENT_SALE_DAYS} days; apply time adjustments or find recent sales.",
    )


def score_geographic_concentration(avg_distance: float) -> FactorScore:
    if avg_distance < 1:
        return FactorScore(10)
    if avg_distance < 2:
        return FactorScore(8)
    if avg_distance < 3:
        return FactorScore(6)
    if avg_distance < 5:
        return FactorScore(4)
    return FactorScore(2, "Comparables are spread over a wide area; prefer sales closer to the subject property.")


def score_comparability_quality(percent: float) -> FactorScore:
    if percent >= 70:
        return FactorScore(10)
    if percent >= 50:
        return FactorScore(8)
    if percent >= 30:
        return FactorScore(6)
    if percent >= 15:
        return FactorScore(4, "Few comparables are closely matched; look for properties graded A or B.")
    return FactorScore(2, "Comparables are poorly matched to the subject; refine the selection criteria.")


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------


def completeness_percent(comparables: Sequence[ComparableProperty]) -> float:
    if not comparables:
        return 0.0
    filled = sum(
        1 for comp in comparables for field in CRITICAL_FIELDS if _has_value(getattr(comp, field))
    )
    return filled / (len(comparables) * len(CRITICAL_FIELDS)) * 100


def coefficient_of_variation(prices: Sequence[float]) -> Optional[float]:
    """Population standard deviation over mean, as a percentage.

    Returns ``None`` for fewer than two prices or a non-positive mean.
    """

    if len(prices) < 2:
        return None
    arr = np.asarray(prices, dtype=float)
    mean = float(arr.mean())
    if mean <= 0:
        return None
    return float(arr.std() / mean * 100)


def recent_sales_percent(comparables: Sequence[ComparableProperty], as_of: date) -> float:
    """Share of closed comparables that sold within the recency window."""

    closed = [
        comp
        for comp in comparables
        if (comp.standard_status or "").lower() == "closed" and comp.close_date is not None
    ]
    if not closed:
        return 0.0
    recent = [comp for comp in closed if 0 <= (as_of - comp.close_date).days <= RECENT_SALE_DAYS]
    return len(recent) / len(closed) * 100


def average_distance(comparables: Sequence[ComparableProperty]) -> float:
    if not comparables:
        return 0.0
    return sum(comp.distance_miles for comp in comparables) / len(comparables)


def top_grade_percent(comparables: Sequence[ComparableProperty]) -> float:
    if not comparables:
        return 0.0
    top = sum(1 for comp in comparables if comp.comparability_grade in TOP_GRADES)
    return top / len(comparables) * 100


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _first_reached(score: float, bands: Tuple[Tuple[int, str], ...], fallback: str) -> str:
    for threshold, value in bands:
        if score >= threshold:
            return value
    return fallback


def _has_value(value) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return value != 0


__all__ = [
    "FactorScore",
    "calculate_confidence",
    "coefficient_of_variation",
    "completeness_percent",
    "confidence_level",
    "overall_recommendation",
    "recent_sales_percent",
]
