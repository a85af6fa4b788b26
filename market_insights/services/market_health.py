"""Inventory classification and the composite market health score."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models.reports import (
    DaysOnMarketSection,
    InventorySnapshot,
    ListToSaleSection,
    MarketHealthResult,
    PriceTrendSection,
)
from ..utils.logging import get_logger

LOGGER = get_logger("services.market_health")

BASE_SCORE = 50


@dataclass(frozen=True)
class HealthStatus:
    label: str
    color: str
    indicator: str


# Checked top-down; the first threshold the score reaches wins.
HEALTH_STATUSES: Tuple[Tuple[int, HealthStatus], ...] = (
    (70, HealthStatus("Hot Market", "#28a745", "seller_market")),
    (55, HealthStatus("Healthy Market", "#5cb85c", "slight_seller")),
    (45, HealthStatus("Balanced Market", "#f0ad4e", "balanced")),
    (30, HealthStatus("Soft Market", "#fd7e14", "slight_buyer")),
)
BUYERS_MARKET = HealthStatus("Buyer's Market", "#dc3545", "buyer_market")

MARKET_DESCRIPTIONS = {
    "unknown": "Insufficient data to determine market type",
    "seller": "Strong seller's market with high demand and limited inventory",
    "slight_seller": "Slight seller's market with more buyers than available homes",
    "balanced": "Balanced market with equal supply and demand",
    "slight_buyer": "Slight buyer's market with more homes than active buyers",
    "buyer": "Strong buyer's market with high inventory and negotiating power for buyers",
}

SELLER_SUMMARY = (
    "This is currently a seller's market. "
    "Sellers may expect strong interest and competitive offers. "
    "Buyers should be prepared to act quickly and potentially offer above asking price."
)
BUYER_SUMMARY = (
    "This is currently a buyer's market. "
    "Buyers have more negotiating leverage and selection. "
    "Sellers may need to price competitively and consider concessions."
)
BALANCED_SUMMARY = (
    "This market is relatively balanced. "
    "Neither buyers nor sellers have a significant advantage. "
    "Fair pricing and reasonable negotiations are typical."
)


def market_type_from_supply(months_of_supply: Optional[float]) -> str:
    if months_of_supply is None:
        return "unknown"
    if months_of_supply < 3:
        return "seller"
    if months_of_supply < 4:
        return "slight_seller"
    if months_of_supply <= 6:
        return "balanced"
    if months_of_supply <= 8:
        return "slight_buyer"
    return "buyer"


def inventory_snapshot(
    active_listings: int,
    pending_listings: int,
    recent_closed_sales: int,
    window_months: int = 3,
) -> InventorySnapshot:
    """Months of supply from active inventory and the trailing sales pace."""

    avg_monthly_sales = recent_closed_sales / window_months if window_months > 0 else 0.0
    months_of_supply = None
    absorption_rate = None
    if avg_monthly_sales > 0:
        months_of_supply = round(active_listings / avg_monthly_sales, 1)
        absorption_rate = round(avg_monthly_sales * 100 / max(active_listings, 1), 1)

    market_type = market_type_from_supply(months_of_supply)
    return InventorySnapshot(
        active_listings=int(active_listings),
        pending_listings=int(pending_listings),
        avg_monthly_sales=round(avg_monthly_sales, 1) if avg_monthly_sales > 0 else None,
        months_of_supply=months_of_supply,
        market_type=market_type,
        market_description=MARKET_DESCRIPTIONS[market_type],
        absorption_rate=absorption_rate,
    )


def health_status(score: int) -> HealthStatus:
    for threshold, status in HEALTH_STATUSES:
        if score >= threshold:
            return status
    return BUYERS_MARKET


def market_summary(market_type: Optional[str]) -> str:
    """Narrative paragraph chosen from the inventory market type alone."""

    if market_type in ("seller", "slight_seller"):
        return SELLER_SUMMARY
    if market_type in ("buyer", "slight_buyer"):
        return BUYER_SUMMARY
    return BALANCED_SUMMARY


def score_market_health(
    dom: Optional[DaysOnMarketSection],
    list_sale_ratio: Optional[ListToSaleSection],
    inventory: Optional[InventorySnapshot],
    price: Optional[PriceTrendSection],
) -> MarketHealthResult:
    """Additive composite score starting from a neutral 50.

    Each signal adjusts the score independently and is skipped when its input
    is missing. The result is not clamped to 0-100; the status thresholds were
    set against the raw range.
    """

    score = BASE_SCORE
    factors: List[str] = []

    if dom is not None and dom.average is not None:
        if dom.average < 30:
            score += 10
            factors.append("Fast-moving market (low DOM)")
        elif dom.average > 90:
            score -= 10
            factors.append("Slow market (high DOM)")

    if list_sale_ratio is not None and list_sale_ratio.average is not None:
        if list_sale_ratio.average >= 1.0:
            score += 10
            factors.append("Properties selling at or above list price")
        elif list_sale_ratio.average < 0.95:
            score -= 5
            factors.append("Properties selling below list price")

    if inventory is not None and inventory.months_of_supply is not None:
        supply = inventory.months_of_supply
        if supply < 3:
            score += 15
            factors.append("Low inventory (seller's market)")
        elif supply > 6:
            score -= 10
            factors.append("High inventory (buyer's market)")
        else:
            factors.append("Balanced inventory")

    if price is not None and price.annualized_appreciation is not None:
        appreciation = price.annualized_appreciation
        if appreciation > 10:
            score += 15
            factors.append("Strong price appreciation")
        elif appreciation > 5:
            score += 10
            factors.append("Healthy price growth")
        elif appreciation > 0:
            score += 5
            factors.append("Modest price growth")
        elif appreciation < -5:
            score -= 10
            factors.append("Price depreciation")

    status = health_status(score)
    LOGGER.debug("market_health score=%s status=%s factors=%s", score, status.indicator, len(factors))
    return MarketHealthResult(
        score=score,
        status=status.label,
        status_color=status.color,
        indicator=status.indicator,
        factors=factors,
        summary=market_summary(inventory.market_type if inventory is not None else None),
    )


__all__ = [
    "HealthStatus",
    "health_status",
    "inventory_snapshot",
    "market_summary",
    "market_type_from_supply",
    "score_market_health",
]
