"""Rolling in-memory analytics over executed searches."""

import logging
import threading
from collections import Counter, deque
from datetime import datetime, timezone

from src.core.schemas import AggregatedMetrics, LocationCount, QueryCount, SearchMetrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_METRICS = 1000
POPULAR_LIMIT = 10


class SearchAnalytics:
    """Bounded FIFO buffer of SearchMetrics with aggregation helpers.

    The oldest sample is dropped on insertion once ``max_metrics`` is reached.
    """

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS) -> None:
        self._metrics: deque[SearchMetrics] = deque(maxlen=max_metrics)
        self._lock = threading.Lock()

    @property
    def max_metrics(self) -> int:
        return self._metrics.maxlen or 0

    def __len__(self) -> int:
        return len(self._metrics)

    def add_metric(self, metric: SearchMetrics) -> None:
        with self._lock:
            self._metrics.append(metric)
        logger.debug(
            "Recorded search %s: %d jobs in %.0fms (cached=%s)",
            metric.search_id,
            metric.jobs_found,
            metric.duration_ms,
            metric.cached,
        )

    def get_recent_metrics(self, count: int = 10) -> list[SearchMetrics]:
        """Last ``count`` samples in insertion order (most recent last)."""
        if count <= 0:
            return []
        with self._lock:
            snapshot = list(self._metrics)
        return snapshot[-count:]

    def get_aggregated_metrics(
        self,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> AggregatedMetrics:
        """Aggregate samples whose timestamp lies in [start_time, end_time]."""
        start = _as_utc(start_time) if start_time is not None else None
        end = _as_utc(end_time) if end_time is not None else None

        with self._lock:
            snapshot = list(self._metrics)

        window = [
            m
            for m in snapshot
            if (start is None or _as_utc(m.timestamp) >= start)
            and (end is None or _as_utc(m.timestamp) <= end)
        ]
        if not window:
            return AggregatedMetrics()

        total = len(window)
        return AggregatedMetrics(
            total_searches=total,
            average_duration=sum(m.duration_ms for m in window) / total,
            average_jobs_found=sum(m.jobs_found for m in window) / total,
            success_rate=sum(1 for m in window if m.jobs_found > 0) / total * 100,
            cache_hit_rate=sum(1 for m in window if m.cached) / total * 100,
            source_success_rates=_source_success_rates(window),
            error_rate=sum(m.errors for m in window) / total * 100,
            popular_queries=[
                QueryCount(query=q, count=c)
                for q, c in _top_counts(m.query for m in window)
            ],
            popular_locations=[
                LocationCount(location=loc, count=c)
                for loc, c in _top_counts(m.location for m in window if m.location)
            ],
        )

    def source_success_rates(self) -> dict[str, float]:
        """Per-source success percentage over the whole buffer."""
        with self._lock:
            snapshot = list(self._metrics)
        return _source_success_rates(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()
        logger.info("Analytics cleared")

    def export(self) -> list[SearchMetrics]:
        with self._lock:
            return list(self._metrics)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _source_success_rates(metrics: list[SearchMetrics]) -> dict[str, float]:
    attempts: Counter[str] = Counter()
    successes: Counter[str] = Counter()
    for m in metrics:
        for source in m.sources:
            attempts[source] += 1
        for source in m.successful_sources:
            successes[source] += 1
    return {source: successes[source] / n * 100 for source, n in attempts.items() if n > 0}


def _top_counts(values) -> list[tuple[str, int]]:
    # Counter.most_common keeps first-seen order among equal counts.
    counts = Counter(v.strip().lower() for v in values if v and v.strip())
    return counts.most_common(POPULAR_LIMIT)
