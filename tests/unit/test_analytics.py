"""Tests for rolling search analytics."""

from datetime import datetime, timedelta, timezone

from src.core.schemas import AggregatedMetrics, SearchMetrics
from src.pipeline.analytics import SearchAnalytics

_T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _metric(n: int = 0, **overrides: object) -> SearchMetrics:
    defaults: dict[str, object] = {
        "search_id": f"search_{n}",
        "timestamp": _T0 + timedelta(minutes=n),
        "query": "python engineer",
        "location": "Austin",
        "sources": ["indeed", "linkedin"],
        "duration_ms": 1000.0,
        "jobs_found": 10,
        "successful_sources": ["indeed", "linkedin"],
        "failed_sources": [],
        "errors": 0,
        "cached": False,
    }
    defaults.update(overrides)
    return SearchMetrics(**defaults)  # type: ignore[arg-type]


class TestBuffer:
    def test_bounded_fifo(self) -> None:
        analytics = SearchAnalytics(max_metrics=3)
        for i in range(5):
            analytics.add_metric(_metric(i))
        assert len(analytics) == 3
        assert [m.search_id for m in analytics.export()] == ["search_2", "search_3", "search_4"]

    def test_recent_most_recent_last(self) -> None:
        analytics = SearchAnalytics()
        for i in range(5):
            analytics.add_metric(_metric(i))
        assert [m.search_id for m in analytics.get_recent_metrics(2)] == ["search_3", "search_4"]

    def test_recent_non_positive_count(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric())
        assert analytics.get_recent_metrics(0) == []
        assert analytics.get_recent_metrics(-3) == []

    def test_clear(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric())
        analytics.clear()
        assert len(analytics) == 0
        assert analytics.max_metrics == 1000


class TestAggregation:
    def test_empty_gives_zeroes(self) -> None:
        assert SearchAnalytics().get_aggregated_metrics() == AggregatedMetrics()

    def test_averages_and_rates(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric(0, duration_ms=1000, jobs_found=10, cached=True))
        analytics.add_metric(_metric(1, duration_ms=3000, jobs_found=0, errors=2))

        agg = analytics.get_aggregated_metrics()

        assert agg.total_searches == 2
        assert agg.average_duration == 2000
        assert agg.average_jobs_found == 5
        assert agg.success_rate == 50
        assert agg.cache_hit_rate == 50
        assert agg.error_rate == 100

    def test_source_success_rates(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric(0))
        analytics.add_metric(_metric(1, successful_sources=["indeed"], failed_sources=["linkedin"]))

        rates = analytics.get_aggregated_metrics().source_success_rates
        assert rates == {"indeed": 100.0, "linkedin": 50.0}
        assert analytics.source_success_rates() == rates

    def test_window_is_inclusive(self) -> None:
        analytics = SearchAnalytics()
        for i in range(5):
            analytics.add_metric(_metric(i))

        agg = analytics.get_aggregated_metrics(_T0 + timedelta(minutes=1), _T0 + timedelta(minutes=3))
        assert agg.total_searches == 3

    def test_naive_bounds_treated_as_utc(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric(0))
        naive = _T0.replace(tzinfo=None)
        assert analytics.get_aggregated_metrics(start_time=naive).total_searches == 1
        assert analytics.get_aggregated_metrics(start_time=naive + timedelta(seconds=1)).total_searches == 0

    def test_popular_queries_case_folded_and_ordered(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric(0, query="Go Developer"))
        analytics.add_metric(_metric(1, query="python engineer"))
        analytics.add_metric(_metric(2, query="Python Engineer"))
        analytics.add_metric(_metric(3, query="go developer"))
        analytics.add_metric(_metric(4, query="Data Scientist"))

        popular = analytics.get_aggregated_metrics().popular_queries
        assert [(q.query, q.count) for q in popular] == [
            ("go developer", 2),
            ("python engineer", 2),
            ("data scientist", 1),
        ]

    def test_popular_locations_skip_missing(self) -> None:
        analytics = SearchAnalytics()
        analytics.add_metric(_metric(0, location=None))
        analytics.add_metric(_metric(1, location="Remote"))
        locations = analytics.get_aggregated_metrics().popular_locations
        assert [(loc.location, loc.count) for loc in locations] == [("remote", 1)]

    def test_popular_capped_at_ten(self) -> None:
        analytics = SearchAnalytics()
        for i in range(15):
            analytics.add_metric(_metric(i, query=f"query {i}"))
        assert len(analytics.get_aggregated_metrics().popular_queries) == 10
