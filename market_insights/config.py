"""Environment-driven settings shared by the data layer, services and API."""

from __future__ import annotations

import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.path.dirname(os.path.dirname(__file__)), "data"))
LISTINGS_CSV = os.getenv("LISTINGS_CSV", "listings.csv")

# Report cache lifetime in seconds.
MARKET_CACHE_TTL = int(os.getenv("MARKET_CACHE_TTL", "3600"))

DEFAULT_ANALYSIS_MONTHS = int(os.getenv("DEFAULT_ANALYSIS_MONTHS", "12"))
INVENTORY_WINDOW_MONTHS = int(os.getenv("INVENTORY_WINDOW_MONTHS", "3"))
MIN_CLOSE_PRICE = float(os.getenv("MIN_CLOSE_PRICE", "10000"))


__all__ = [
    "LOG_LEVEL",
    "DATA_DIR",
    "LISTINGS_CSV",
    "MARKET_CACHE_TTL",
    "DEFAULT_ANALYSIS_MONTHS",
    "INVENTORY_WINDOW_MONTHS",
    "MIN_CLOSE_PRICE",
]
