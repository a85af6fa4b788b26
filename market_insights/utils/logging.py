"""Structured key=value logging for the market analytics services."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Libraries whose INFO output drowns the report logs.
QUIET_LOGGERS = ("httpx",)


def configure_logging(namespace: str = "market_insights", level: Optional[str] = None) -> logging.Logger:
    """Install a single stream handler on ``namespace`` and return it.

    Calling again only adjusts the level, so tests and the API can share the
    handler.
    """

    logger = logging.getLogger(namespace)
    logger.setLevel((level or LOG_LEVEL).upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    base = logging.getLogger("market_insights")
    if not base.handlers:
        base = configure_logging()
    return base.getChild(child) if child else base


def format_fields(**fields: Any) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


@contextmanager
def log_timing(logger: logging.Logger, event: str, **fields: Any) -> Iterator[None]:
    """Log ``event`` with its wall-clock duration once the block exits."""

    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.debug("%s duration_ms=%s %s", event, elapsed_ms, format_fields(**fields))


__all__ = ["configure_logging", "format_fields", "get_logger", "log_timing"]
