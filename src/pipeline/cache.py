"""Short-TTL, bounded, in-memory cache of search results.

Expiry is lazy: an entry older than its TTL is removed when it is read, never
by a background sweep. At capacity the entry with the oldest insertion
timestamp is evicted (not least-recently-read).
"""

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from src.core.schemas import SearchCriteria

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_SIZE = 100


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class SearchCache(Generic[T]):
    """Process-local search cache keyed by normalized criteria.

    Usage::

        cache = SearchCache(ttl_seconds=300, max_size=100)
        key = cache.generate_key(criteria)
        if (hit := cache.get(key)) is None:
            ...  # run the search
            cache.set(key, result)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)
        self._entries: dict[str, CacheEntry[T]] = {}
        self._default_ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()

    @staticmethod
    def generate_key(criteria: SearchCriteria) -> str:
        """Deterministic key: case-folded scalars, sorted multi-valued fields."""
        salary = criteria.salary
        normalized: dict[str, Any] = {
            "query": criteria.query.strip().lower(),
            "location": _fold(criteria.location),
            "preferred_locations": _fold_sorted(criteria.preferred_locations),
            "sources": _fold_sorted(criteria.sources),
            "job_types": _fold_sorted(criteria.job_types),
            "keywords": _fold_sorted(criteria.keywords),
            "exclude_keywords": _fold_sorted(criteria.exclude_keywords),
            "salary": (
                [salary.min, salary.max, _fold(salary.currency)] if salary is not None else None
            ),
            "posted_within_days": criteria.posted_within_days,
            "max_results": criteria.max_results,
        }
        return json.dumps(normalized, sort_keys=True, separators=(",", ":"))

    def get(self, key: str) -> T | None:
        """Return cached data, or None if never cached or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key[:50])
                return None
            return entry.data

    def set(self, key: str, data: T, ttl: float | None = None) -> None:
        """Insert data, evicting the oldest entry first when full."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                oldest = self._find_oldest_key()
                if oldest is not None:
                    del self._entries[oldest]
                    logger.debug("Cache full (%d) - evicted %s", self._max_size, oldest[:50])
            self._entries[key] = CacheEntry(
                data=data,
                timestamp=self._clock(),
                ttl=ttl if ttl is not None else self._default_ttl,
            )

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, float]:
        """Return size, max size and utilization (percent)."""
        size = len(self._entries)
        return {
            "size": size,
            "max_size": self._max_size,
            "utilization": size / self._max_size * 100,
        }

    def _find_oldest_key(self) -> str | None:
        oldest_key: str | None = None
        oldest_ts = float("inf")
        for key, entry in self._entries.items():
            if entry.timestamp < oldest_ts:
                oldest_ts = entry.timestamp
                oldest_key = key
        return oldest_key


def _fold(value: str | None) -> str | None:
    return value.strip().lower() if value is not None else None


def _fold_sorted(values: tuple[str, ...] | None) -> list[str] | None:
    if values is None:
        return None
    return sorted(v.strip().lower() for v in values)
