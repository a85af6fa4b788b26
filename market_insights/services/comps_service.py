"""Value estimate and dispersion summary for an adjusted comparable set."""

from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ..models.records import ComparableProperty
from ..models.reports import CompsSummary, EstimatedValue, WeightEntry
from ..utils.logging import get_logger
from .aggregation import median
from .confidence import TOP_GRADES, calculate_confidence

LOGGER = get_logger("services.comps")

GRADE_WEIGHTS: Dict[str, float] = {"A": 2.0, "B": 1.5, "C": 1.0, "D": 0.5, "F": 0.25}
DEFAULT_WEIGHT = 1.0


def summarize_comparables(
    comparables: Sequence[ComparableProperty],
    as_of: Optional[date] = None,
) -> Optional[CompsSummary]:
    """Estimate low/mid/high values from the best-graded comparables.

    A and B graded comparables are used when any exist, otherwise the whole
    set. The mid value is weighted by grade unless a comparable carries its
    own weight override.
    """

    if not comparables:
        return None

    df = pd.DataFrame([comp.model_dump() for comp in comparables])
    df["weight"] = (
        pd.to_numeric(df["weight_override"], errors="coerce")
        .fillna(df["comparability_grade"].map(GRADE_WEIGHTS))
        .fillna(DEFAULT_WEIGHT)
    )

    top = df[df["comparability_grade"].isin(TOP_GRADES)]
    pool = top if not top.empty else df

    prices = pool["adjusted_price"].astype(float)
    weights = pool["weight"].astype(float)
    mid_unweighted = float(prices.mean())
    weight_total = float(weights.sum())
    mid_weighted = float((prices * weights).sum() / weight_total) if weight_total > 0 else mid_unweighted

    breakdown = [
        WeightEntry(
            listing_id=row["listing_id"],
            address=row["address"],
            grade=row["comparability_grade"],
            weight=float(row["weight"]),
            is_override=bool(pd.notna(row["weight_override"])),
            adjusted_price=float(row["adjusted_price"]),
            weighted_contribution=float(row["adjusted_price"] * row["weight"]),
        )
        for _, row in pool.iterrows()
    ]

    all_prices = df["adjusted_price"].astype(float).to_numpy()
    std_dev = float(np.std(all_prices)) if len(all_prices) > 1 else 0.0

    estimated = EstimatedValue(
        low=_thousands(float(prices.min())),
        mid=_thousands(mid_weighted),
        high=_thousands(float(prices.max())),
        mid_weighted=_thousands(mid_weighted),
        mid_unweighted=_thousands(mid_unweighted),
        weight_difference=_thousands(mid_weighted - mid_unweighted),
        weight_total=round(weight_total, 2),
        weight_breakdown=breakdown,
    )

    LOGGER.debug("comps_summarized total=%s top=%s mid=%s", len(df), len(top), estimated.mid)
    return CompsSummary(
        total_found=len(df),
        top_comps_count=len(top),
        avg_adjusted_price=round(float(all_prices.mean())),
        median_adjusted_price=round(median(all_prices.tolist()) or 0.0),
        price_std_dev=round(std_dev),
        estimated_value=estimated,
        avg_distance=round(float(df["distance_miles"].mean()), 2),
        confidence=calculate_confidence(comparables, as_of=as_of),
    )


def _thousands(value: float) -> float:
    return float(round(value, -3))


__all__ = ["GRADE_WEIGHTS", "summarize_comparables"]
