"""Integration test: HTTP routes over a pipeline backed by fake adapters."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from src.api.server import create_app, status_for
from src.core.errors import ErrorCode
from src.core.schemas import RawJob, ScrapeResult, ScraperConfig, ScraperErrorInfo, error_response
from src.pipeline.analytics import SearchAnalytics
from src.pipeline.cache import SearchCache
from src.pipeline.orchestrator import SearchPipeline
from src.platforms.base import ScraperAdapter, build_scrape_result


class StaticAdapter(ScraperAdapter):
    """Indeed returns two jobs; any other source reports an upstream error."""

    def __init__(self, source: str) -> None:
        self._source = source

    @property
    def source_name(self) -> str:
        return self._source

    async def scrape(self, config: ScraperConfig) -> ScrapeResult:
        if self._source != "indeed":
            error = ScraperErrorInfo(source=self._source, message="upstream 503", code=ErrorCode.SCRAPER_FAILED)
            return build_scrape_result(self._source, [], max_results=config.max_results, started=0.0, errors=[error])
        jobs = [
            RawJob(
                id=f"indeed-{n}",
                title=f"Python Engineer {n}",
                company=f"Company {n}",
                location="Austin, TX",
                url=f"https://www.indeed.com/viewjob?jk={n}",
                source="indeed",
            )
            for n in range(2)
        ]
        return build_scrape_result("indeed", jobs, max_results=config.max_results, started=0.0)


@pytest.fixture
def pipeline() -> SearchPipeline:
    return SearchPipeline(cache=SearchCache(), analytics=SearchAnalytics(), adapter_factory=StaticAdapter)


@pytest.fixture
def client(pipeline: SearchPipeline) -> Iterator[TestClient]:
    with TestClient(create_app(pipeline)) as c:
        yield c


class TestSearchJobs:
    def test_success(self, client: TestClient) -> None:
        resp = client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert len(body["data"]["jobs"]) == 2
        job = body["data"]["jobs"][0]
        assert job["rank"] == 1
        assert "scoreBreakdown" in job
        meta = body["data"]["metadata"]
        assert meta["successfulSources"] == ["indeed"]
        assert meta["partialResults"] is False
        assert "warnings" not in body["data"]

    def test_partial_results_are_206(self, client: TestClient) -> None:
        resp = client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed", "linkedin"]})

        assert resp.status_code == 206
        data = resp.json()["data"]
        assert data["metadata"]["failedSources"] == ["linkedin"]
        assert data["errors"][0]["code"] == "SCRAPER_FAILED"
        assert data["warnings"] == ["Some sources failed: linkedin. Results may be incomplete."]

    def test_invalid_json(self, client: TestClient) -> None:
        resp = client.post(
            "/api/search-jobs", content=b"{not json", headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_FAILED"
        assert body["error"]["message"] == "Invalid JSON in request body"

    def test_validation_failure(self, client: TestClient) -> None:
        resp = client.post("/api/search-jobs", json={"query": "", "sources": ["monster"]})

        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["message"] == "Invalid request data"
        assert len(error["details"]["errors"]) == 2

    def test_internal_error_is_500(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        def _explode(*args: object, **kwargs: object) -> None:
            msg = "boom"
            raise RuntimeError(msg)

        monkeypatch.setattr("src.pipeline.orchestrator.deduplicate", _explode)
        resp = client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})

        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "INTERNAL_ERROR"

    def test_usage_document(self, client: TestClient) -> None:
        resp = client.get("/api/search-jobs")

        assert resp.status_code == 200
        body = resp.json()
        assert body["requiredFields"] == ["query"]
        assert "maxResults" in body["optionalFields"]
        assert body["defaults"]["sources"] == ["google_jobs"]
        assert body["example"]["query"] == "Software Engineer"


class TestAnalytics:
    def test_metrics_after_search(self, client: TestClient) -> None:
        client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})
        client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})

        resp = client.get("/api/analytics", params={"action": "metrics"})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["metrics"]["totalSearches"] == 2
        assert data["metrics"]["cacheHitRate"] == pytest.approx(50.0)
        assert data["metrics"]["popularQueries"] == [{"query": "python", "count": 2}]
        assert data["cache"]["size"] == 1
        assert data["cache"]["maxSize"] == 100

    def test_metrics_time_window(self, client: TestClient) -> None:
        client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})
        resp = client.get(
            "/api/analytics", params={"action": "metrics", "startTime": "2000-01-01T00:00:00Z", "endTime": "2000-01-02T00:00:00Z"},
        )
        assert resp.json()["data"]["metrics"]["totalSearches"] == 0

    def test_bad_time_rejected(self, client: TestClient) -> None:
        resp = client.get("/api/analytics", params={"action": "metrics", "startTime": "yesterday"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_recent(self, client: TestClient) -> None:
        for query in ("a", "b", "c"):
            client.post("/api/search-jobs", json={"query": query, "sources": ["indeed"]})

        resp = client.get("/api/analytics", params={"action": "recent", "count": "2"})

        searches = resp.json()["data"]["searches"]
        assert [s["query"] for s in searches] == ["b", "c"]
        assert searches[0]["searchId"].startswith("search_")

    def test_bad_count_rejected(self, client: TestClient) -> None:
        resp = client.get("/api/analytics", params={"action": "recent", "count": "many"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("params", [{}, {"action": "export"}])
    def test_invalid_action(self, client: TestClient, params: dict[str, str]) -> None:
        resp = client.get("/api/analytics", params=params)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid action parameter"}

    def test_delete_clears_analytics_and_cache(self, client: TestClient, pipeline: SearchPipeline) -> None:
        client.post("/api/search-jobs", json={"query": "python", "sources": ["indeed"]})
        assert pipeline.cache.size == 1

        resp = client.delete("/api/analytics")

        assert resp.json() == {"success": True, "message": "Analytics and cache cleared"}
        assert pipeline.cache.size == 0
        assert len(pipeline.analytics) == 0


class TestMisc:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok"}

    def test_status_for_failure_codes(self) -> None:
        assert status_for(error_response(ErrorCode.VALIDATION_FAILED, "bad")) == 400
        assert status_for(error_response(ErrorCode.INTERNAL_ERROR, "oops")) == 500
