from typing import Any, Dict

from ..models.records import ComparableProperty, SaleRecord
from ..utils.coerce import to_date, to_float, to_int, to_str
from ..utils.logging import get_logger

LOGGER = get_logger("db.mappers")

STORE_CATEGORIES = (
    "residential",
    "residential lease",
    "residential income",
    "commercial sale",
    "commercial lease",
    "land",
    "business opportunity",
)

RESIDENTIAL_TYPES = (
    "single family residence", "single family", "single-family", "sfr", "detached",
    "condo", "condominium", "townhouse", "townhome", "town house", "attached",
    "duplex", "triplex", "quadruplex", "multi-family", "multifamily",
    "two family", "three family", "four family", "ranch", "colonial", "cape",
    "cape cod", "split level", "contemporary", "victorian",
)
COMMERCIAL_TYPES = ("commercial", "office", "retail", "industrial", "warehouse", "mixed use", "mixed-use")
LAND_TYPES = ("land", "lot", "vacant land", "acreage", "farm", "ranch land")


def normalize_property_type(property_type: str) -> str:
    """Map a detailed subtype ("Condo", "Office") onto a store category."""

    if not property_type or property_type == "all":
        return "all"
    lowered = property_type.strip().lower()
    if lowered in STORE_CATEGORIES:
        return property_type
    # Land is checked before residential so "ranch land" is not read as "ranch".
    if any(term in lowered for term in LAND_TYPES if " " in term):
        return "Land"
    if any(term in lowered for term in RESIDENTIAL_TYPES):
        return "Residential"
    if any(term in lowered for term in COMMERCIAL_TYPES):
        return "Commercial Sale"
    if any(term in lowered for term in LAND_TYPES):
        return "Land"
    LOGGER.warning("unknown_property_type value=%s using=all", property_type)
    return "all"


def map_sale_row(r: Dict[str, Any]) -> SaleRecord:
    return SaleRecord(
        listing_id=to_str(r.get("listing_id")) or None,
        standard_status=to_str(r.get("standard_status")) or None,
        close_date=to_date(r.get("close_date")),
        listing_contract_date=to_date(r.get("listing_contract_date")),
        list_date=to_date(r.get("list_date") or r.get("listing_date")),
        close_price=to_float(r.get("close_price")),
        list_price=to_float(r.get("list_price")),
        building_area_total=to_float(r.get("building_area_total") or r.get("sqft")),
        days_on_market=to_int(r.get("days_on_market")),
        city=to_str(r.get("city")) or None,
        state=to_str(r.get("state_or_province") or r.get("state")) or None,
        property_type=to_str(r.get("property_type")) or None,
        latitude=to_float(r.get("latitude")),
        longitude=to_float(r.get("longitude")),
    )


def map_comparable_row(r: Dict[str, Any]) -> ComparableProperty:
    grade = to_str(r.get("comparability_grade")).upper() or None
    return ComparableProperty(
        listing_id=to_str(r.get("listing_id")) or None,
        address=to_str(r.get("unparsed_address") or r.get("address")) or None,
        adjusted_price=to_float(r.get("adjusted_price")) or 0.0,
        distance_miles=to_float(r.get("distance_miles")) or 0.0,
        comparability_grade=grade if grade in ("A", "B", "C", "D", "F") else None,
        standard_status=to_str(r.get("standard_status")) or None,
        close_date=to_date(r.get("close_date")),
        weight_override=to_float(r.get("weight_override")),
        building_area_total=to_float(r.get("building_area_total")),
        bedrooms_total=to_int(r.get("bedrooms_total")),
        bathrooms_total=to_float(r.get("bathrooms_total")),
        year_built=to_int(r.get("year_built")),
        list_price=to_float(r.get("list_price")),
        latitude=to_float(r.get("latitude")),
        longitude=to_float(r.get("longitude")),
    )
