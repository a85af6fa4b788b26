"""Pydantic models for the listing records the analytics core consumes."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ComparabilityGrade = Literal["A", "B", "C", "D", "F"]


class SaleRecord(BaseModel):
    """One closed or active listing as supplied by the data source."""

    model_config = ConfigDict(frozen=True)

    listing_id: Optional[str] = None
    standard_status: Optional[str] = None
    close_date: Optional[date] = None
    listing_contract_date: Optional[date] = None
    list_date: Optional[date] = None
    close_price: Optional[float] = None
    list_price: Optional[float] = None
    building_area_total: Optional[float] = None
    days_on_market: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    property_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ComparableProperty(BaseModel):
    """A comparable sale or listing after CMA adjustments have been applied."""

    model_config = ConfigDict(frozen=True)

    listing_id: Optional[str] = None
    address: Optional[str] = None
    adjusted_price: float
    distance_miles: float = Field(0.0, ge=0)
    comparability_grade: Optional[ComparabilityGrade] = None
    standard_status: Optional[str] = None
    close_date: Optional[date] = None
    weight_override: Optional[float] = Field(None, ge=0)

    # Critical fields used for data completeness.
    building_area_total: Optional[float] = None
    bedrooms_total: Optional[int] = None
    bathrooms_total: Optional[float] = None
    year_built: Optional[int] = None
    list_price: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


CRITICAL_FIELDS = (
    "building_area_total",
    "bedrooms_total",
    "bathrooms_total",
    "year_built",
    "list_price",
    "latitude",
    "longitude",
)
