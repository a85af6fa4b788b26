"""IO helpers for loading listing exports into pandas DataFrames."""

from __future__ import annotations

import os

import pandas as pd

from ..config import DATA_DIR
from .logging import get_logger

LOGGER = get_logger("utils.io")


def resolve_path(name: str) -> str:
    return name if os.path.isabs(name) else os.path.join(DATA_DIR, name)


def load_csv(name: str) -> pd.DataFrame:
    """Load a CSV by filename from the data directory."""

    path = resolve_path(name)
    if not os.path.exists(path):
        raise FileNotFoundError(f"CSV not found: {path}")
    LOGGER.debug("loading_csv path=%s", path)
    return pd.read_csv(path)


__all__ = ["load_csv", "resolve_path"]
