from datetime import date, datetime
from typing import Optional

import pandas as pd


def _is_blank(v) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and pd.isna(v):
        return True
    return v == "" or str(v).lower() in ("null", "nan", "nat")


def to_int(v) -> Optional[int]:
    try:
        if _is_blank(v):
            return None
        return int(float(v))
    except Exception:
        return None

def to_float(v) -> Optional[float]:
    try:
        if _is_blank(v):
            return None
        return float(v)
    except Exception:
        return None

def to_date(v) -> Optional[date]:
    if _is_blank(v):
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    parsed = pd.to_datetime(str(v), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()

def to_str(v) -> str:
    return "" if _is_blank(v) else str(v).strip()
