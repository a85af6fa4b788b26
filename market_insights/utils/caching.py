"""Result caching used by the report services.

Caches are injected into the services that use them; nothing here holds
process-wide state.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, TypeVar

from .logging import get_logger

LOGGER = get_logger("utils.caching")

T = TypeVar("T")


class ResultCache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...


class TTLCache:
    """Thread-safe in-memory cache with per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now + ttl_seconds, value)

    def clear(self, prefix: Optional[str] = None) -> int:
        """Drop entries, optionally only those whose key starts with ``prefix``."""

        with self._lock:
            if prefix is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed
            to_delete = [key for key in self._entries if key.startswith(prefix)]
            for key in to_delete:
                del self._entries[key]
            return len(to_delete)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def make_cache_key(prefix: str, **params: Any) -> str:
    """Deterministic key of the form ``<prefix>_<md5 of sorted params>``."""

    payload = json.dumps(params, sort_keys=True, default=str)
    digest = hashlib.md5(payload.encode("utf-8")).hexdigest()
    return f"{prefix}_{digest}"


def get_or_compute(cache: Optional[ResultCache], key: str, ttl_seconds: int, compute: Callable[[], T]) -> T:
    """Return the cached value for ``key`` or compute and store it.

    A failing cache behaves like an empty one. Two concurrent callers may both
    compute on a miss; the computation is idempotent so the last write wins.
    """

    if cache is not None:
        try:
            cached = cache.get(key)
        except Exception as exc:
            LOGGER.warning("cache_get_failed key=%s error=%s", key, exc)
            cached = None
        if cached is not None:
            LOGGER.debug("cache_hit key=%s", key)
            return cached

    LOGGER.debug("cache_miss key=%s", key)
    result = compute()

    if cache is not None:
        try:
            cache.set(key, result, ttl_seconds)
        except Exception as exc:
            LOGGER.warning("cache_set_failed key=%s error=%s", key, exc)
    return result


__all__ = ["ResultCache", "TTLCache", "make_cache_key", "get_or_compute"]
