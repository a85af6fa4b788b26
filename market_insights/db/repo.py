"""Listing repository backed by a pandas frame loaded from CSV or rows."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..config import LISTINGS_CSV, MIN_CLOSE_PRICE
from ..models.records import SaleRecord
from ..utils.io import load_csv
from ..utils.logging import get_logger
from .mappers import map_sale_row

LOGGER = get_logger("db.repo")

_REQUIRED_COLUMNS = ["standard_status", "close_date", "close_price", "city", "state_or_province", "property_type"]


class ListingRepository:
    """Answers the listing queries the report services need.

    Every query applies the location filters; ``property_type`` is expected to
    be a store category (see ``normalize_property_type``) or ``"all"``.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        self._listings = self._prepare(frame)
        LOGGER.info("Listing repository loaded rows=%s", len(self._listings))

    @classmethod
    def from_csv(cls, name: str = LISTINGS_CSV) -> "ListingRepository":
        return cls(load_csv(name))

    @classmethod
    def from_rows(cls, rows: Iterable[Dict]) -> "ListingRepository":
        return cls(pd.DataFrame(list(rows)))

    # ------------------------------------------------------------------
    # Queries
    def closed_sales(
        self,
        city: str,
        state: str = "",
        property_type: str = "all",
        start: Optional[date] = None,
        end: Optional[date] = None,
        min_price: float = MIN_CLOSE_PRICE,
    ) -> List[SaleRecord]:
        df = self._listings
        mask = self._location_mask(city, state, property_type)
        mask &= df["standard_status"].str.lower() == "closed"
        mask &= df["close_date"].notna()
        mask &= df["close_price"].fillna(0) > min_price
        if start is not None:
            mask &= df["close_date"] >= pd.Timestamp(start)
        if end is not None:
            mask &= df["close_date"] <= pd.Timestamp(end)
        subset = df[mask]
        LOGGER.debug("closed_sales city=%s state=%s type=%s rows=%s", city, state, property_type, len(subset))
        return [map_sale_row(row) for row in subset.to_dict("records")]

    def count_by_status(self, status: str, city: str, state: str = "", property_type: str = "all") -> int:
        df = self._listings
        mask = self._location_mask(city, state, property_type)
        mask &= df["standard_status"].str.lower() == status.lower()
        return int(mask.sum())

    # ------------------------------------------------------------------
    def _location_mask(self, city: str, state: str, property_type: str) -> pd.Series:
        df = self._listings
        mask = pd.Series(True, index=df.index)
        if city:
            mask &= df["city"].str.lower() == city.strip().lower()
        if state:
            mask &= df["state_or_province"].str.lower() == state.strip().lower()
        if property_type and property_type != "all":
            mask &= df["property_type"].str.lower() == property_type.strip().lower()
        return mask

    @staticmethod
    def _prepare(frame: pd.DataFrame) -> pd.DataFrame:
        df = frame.copy()
        if "state_or_province" not in df.columns and "state" in df.columns:
            df = df.rename(columns={"state": "state_or_province"})
        for col in _REQUIRED_COLUMNS:
            if col not in df.columns:
                df[col] = None
        for col in ["standard_status", "city", "state_or_province", "property_type"]:
            df[col] = df[col].fillna("").astype(str)
        df["close_date"] = pd.to_datetime(df["close_date"], errors="coerce")
        df["close_price"] = pd.to_numeric(df["close_price"], errors="coerce")
        return df


__all__ = ["ListingRepository"]
