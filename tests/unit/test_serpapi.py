"""Tests for the SerpAPI client and the Google Jobs / LinkedIn adapters."""

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from src.core.config import SerpApiConfig, Settings
from src.core.errors import ErrorCode, ScraperError
from src.core.schemas import ScraperConfig
from src.platforms.serpapi.adapter import (
    GoogleJobsAdapter,
    LinkedInJobsAdapter,
    create_google_jobs_adapter,
)
from src.platforms.serpapi.client import SerpApiClient


def _item(**overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "title": "Senior Python Engineer",
        "company_name": "Acme",
        "location": "Austin, TX",
        "via": "via Indeed",
        "description": "Build APIs.",
        "job_highlights": [{"title": "Qualifications", "items": ["5+ years Python", "AWS"]}],
        "detected_extensions": {
            "posted_at": "3 days ago",
            "schedule_type": "Full-time",
            "salary": "$120K–$150K a year",
        },
        "apply_options": [{"title": "Indeed", "link": "https://www.indeed.com/viewjob?jk=1"}],
        "job_id": "eyJqb2IiOjF9",
    }
    item.update(overrides)
    return item


def _client(handler: Any, **config: Any) -> tuple[SerpApiClient, AsyncMock]:
    sleep = AsyncMock()
    client = SerpApiClient(
        SerpApiConfig(**config),
        api_key="test-key",
        transport=httpx.MockTransport(handler),
        sleep=sleep,
    )
    return client, sleep


def _config(**overrides: Any) -> ScraperConfig:
    defaults: dict[str, Any] = {"search_query": "python engineer", "location": "Austin, TX"}
    defaults.update(overrides)
    return ScraperConfig(**defaults)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TestSerpApiClient:
    async def test_success_sends_key_and_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"jobs_results": []})

        client, _ = _client(handler)
        payload = await client.search("google_jobs", {"engine": "google_jobs", "q": "python"})

        assert payload == {"jobs_results": []}
        assert seen[0].url.params["api_key"] == "test-key"
        assert seen[0].url.params["q"] == "python"
        await client.aclose()

    async def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SERPAPI_KEY", raising=False)
        client = SerpApiClient(SerpApiConfig())
        assert client.configured is False
        with pytest.raises(ScraperError) as exc_info:
            await client.search("google_jobs", {})
        assert exc_info.value.code == ErrorCode.SCRAPER_INVALID_CONFIG
        assert "SERPAPI_KEY" in exc_info.value.message
        await client.aclose()

    async def test_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SERP_KEY", "from-env")
        client = SerpApiClient(SerpApiConfig(api_key_env="MY_SERP_KEY"))
        assert client.configured is True
        await client.aclose()

    async def test_retries_then_succeeds(self) -> None:
        responses = iter([httpx.Response(503), httpx.Response(429), httpx.Response(200, json={"ok": 1})])
        client, sleep = _client(lambda request: next(responses))

        assert await client.search("google_jobs", {}) == {"ok": 1}
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        await client.aclose()

    async def test_retries_exhausted(self) -> None:
        client, sleep = _client(lambda request: httpx.Response(429), max_retries=2)
        with pytest.raises(ScraperError) as exc_info:
            await client.search("google_jobs", {})
        assert exc_info.value.code == ErrorCode.SCRAPER_RATE_LIMITED
        assert sleep.await_count == 1
        await client.aclose()

    async def test_transport_error_retried(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, sleep = _client(handler, max_retries=3)
        with pytest.raises(ScraperError) as exc_info:
            await client.search("google_jobs", {})
        assert exc_info.value.code == ErrorCode.SCRAPER_NETWORK_ERROR
        assert sleep.await_count == 2
        await client.aclose()

    async def test_client_error_not_retried(self) -> None:
        client, sleep = _client(lambda request: httpx.Response(401, json={"error": "Invalid API key."}))
        with pytest.raises(ScraperError, match="Invalid API key"):
            await client.search("google_jobs", {})
        sleep.assert_not_awaited()
        await client.aclose()

    async def test_no_results_is_empty(self) -> None:
        body = {"error": "Google hasn't returned any results for this query."}
        client, _ = _client(lambda request: httpx.Response(200, json=body))
        assert await client.search("google_jobs", {}) == {}
        await client.aclose()

    async def test_non_json_body(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ScraperError) as exc_info:
            await client.search("google_jobs", {})
        assert exc_info.value.code == ErrorCode.SCRAPER_PARSE_ERROR
        await client.aclose()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class TestGoogleJobsAdapter:
    async def test_scrape_transforms_results(self) -> None:
        body = {"jobs_results": [_item(), _item(company_name=""), "garbage"]}
        client, _ = _client(lambda request: httpx.Response(200, json=body))
        adapter = GoogleJobsAdapter(client)

        result = await adapter.scrape(_config())
        await adapter.close()

        assert result.source == "google_jobs"
        assert result.success_count == 1
        assert result.failed_count == 2
        job = result.jobs[0]
        assert job.title == "Senior Python Engineer"
        assert job.url == "https://www.indeed.com/viewjob?jk=1"
        assert job.job_type == "full-time"
        assert job.external_id == "eyJqb2IiOjF9"
        assert job.salary is not None
        assert job.salary.min == 120000
        assert "Qualifications:" in job.description
        assert job.metadata["via"] == "via Indeed"

    async def test_errors_reported_not_raised(self) -> None:
        client, _ = _client(lambda request: httpx.Response(500), max_retries=1)
        result = await GoogleJobsAdapter(client).scrape(_config())
        assert result.jobs == []
        assert result.errors[0].code == ErrorCode.SCRAPER_FAILED
        assert result.errors[0].source == "google_jobs"

    def test_build_params(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, json={}))
        params = GoogleJobsAdapter(client).build_params(_config(job_type="contract"))
        assert params == {"engine": "google_jobs", "q": "python engineer contract", "hl": "en", "location": "Austin, TX"}

    def test_transform_defaults(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, json={}))
        job = GoogleJobsAdapter(client).transform(
            {"title": "Engineer", "company_name": "Acme", "job_id": "j1"},
        )
        assert job is not None
        assert job.location == "Remote"
        assert job.url == ""
        assert job.salary is None
        assert job.id.startswith("google_jobs-")

    def test_factory(self) -> None:
        assert create_google_jobs_adapter(Settings()).source_name == "google_jobs"


class TestLinkedInJobsAdapter:
    async def test_keeps_only_linkedin_postings(self) -> None:
        body = {
            "jobs_results": [
                _item(via="via LinkedIn", job_id="li"),
                _item(via="via Indeed", job_id="other"),
                _item(
                    via="via Company Site",
                    job_id="li-link",
                    apply_options=[
                        {"link": "https://acme.example/careers/1"},
                        {"link": "https://www.linkedin.com/jobs/view/42"},
                    ],
                ),
            ],
        }
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=body)

        client, _ = _client(handler)
        result = await LinkedInJobsAdapter(client).scrape(_config())

        assert seen[0].url.params["q"] == "python engineer linkedin"
        assert [j.external_id for j in result.jobs] == ["li", "li-link"]
        assert result.failed_count == 0
        assert result.jobs[1].url == "https://www.linkedin.com/jobs/view/42"
        assert all(j.source == "linkedin" for j in result.jobs)
