"""SerpAPI-backed adapters: Google Jobs, and LinkedIn postings surfaced through it."""

import logging
import time
from typing import Any

from src.core.config import Settings
from src.core.schemas import RawJob, ScrapeResult, ScraperConfig, ScraperErrorInfo
from src.pipeline.normalize import generate_job_id, normalize_location, normalize_salary, parse_posted_date
from src.platforms.base import ScraperAdapter, build_scrape_result, error_info
from src.platforms.serpapi.client import SerpApiClient

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_CHARS = 2000


class GoogleJobsAdapter(ScraperAdapter):
    """Google Jobs results via the SerpAPI ``google_jobs`` engine."""

    engine = "google_jobs"

    def __init__(self, client: SerpApiClient) -> None:
        self._client = client

    @property
    def source_name(self) -> str:
        return "google_jobs"

    async def scrape(self, config: ScraperConfig) -> ScrapeResult:
        started = time.monotonic()
        jobs: list[RawJob] = []
        skipped = 0
        errors: list[ScraperErrorInfo] = []
        try:
            payload = await self._client.search(self.source_name, self.build_params(config))
            jobs, skipped = self.parse_results(payload.get("jobs_results") or [])
        except Exception as e:
            logger.warning("%s scrape failed: %s", self.source_name, e)
            errors.append(error_info(self.source_name, e))

        logger.info("%s: %d jobs parsed, %d skipped", self.source_name, len(jobs), skipped)
        return build_scrape_result(
            self.source_name,
            jobs,
            max_results=config.max_results,
            started=started,
            errors=errors,
            failed_count=skipped,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def build_params(self, config: ScraperConfig) -> dict[str, Any]:
        query = config.search_query
        if config.job_type:
            query = f"{query} {config.job_type}"
        params: dict[str, Any] = {"engine": self.engine, "q": query, "hl": "en"}
        if config.location:
            params["location"] = config.location
        return params

    def parse_results(self, results: list[Any]) -> tuple[list[RawJob], int]:
        jobs: list[RawJob] = []
        skipped = 0
        for item in results:
            if isinstance(item, dict) and not self.accepts(item):
                continue
            job = self.transform(item) if isinstance(item, dict) else None
            if job is None:
                skipped += 1
            else:
                jobs.append(job)
        return jobs, skipped

    def accepts(self, item: dict[str, Any]) -> bool:
        """Whether a result belongs to this source at all."""
        return True

    def transform(self, item: dict[str, Any]) -> RawJob | None:
        """Map one ``jobs_results`` entry; None when title or company is missing."""
        title = (item.get("title") or "").strip()
        company = (item.get("company_name") or "").strip()
        if not title or not company:
            return None

        link = self.apply_link(item)
        extensions = item.get("detected_extensions") or {}
        schedule = extensions.get("schedule_type")
        return RawJob(
            id=generate_job_id(self.source_name, link or f"{company}-{title}"),
            title=title,
            company=company,
            location=normalize_location(item.get("location") or "Remote"),
            salary=normalize_salary(extensions.get("salary")),
            description=_build_description(item),
            url=link,
            source=self.source_name,
            job_type=schedule.lower() if schedule else None,
            posted_date=parse_posted_date(extensions.get("posted_at")),
            external_id=item.get("job_id"),
            metadata={
                "via": item.get("via"),
                "thumbnail": item.get("thumbnail"),
                "extensions": item.get("extensions"),
            },
        )

    def apply_link(self, item: dict[str, Any]) -> str:
        options = item.get("apply_options") or []
        for option in options:
            if isinstance(option, dict) and option.get("link"):
                return str(option["link"])
        return ""


class LinkedInJobsAdapter(GoogleJobsAdapter):
    """LinkedIn postings, found through Google Jobs and kept only when served via LinkedIn."""

    @property
    def source_name(self) -> str:
        return "linkedin"

    def build_params(self, config: ScraperConfig) -> dict[str, Any]:
        params = super().build_params(config)
        params["q"] = f"{params['q']} linkedin"
        return params

    def accepts(self, item: dict[str, Any]) -> bool:
        return _served_by_linkedin(item)

    def apply_link(self, item: dict[str, Any]) -> str:
        for option in item.get("apply_options") or []:
            link = option.get("link", "") if isinstance(option, dict) else ""
            if "linkedin.com" in link:
                return link
        return super().apply_link(item)


def _served_by_linkedin(item: dict[str, Any]) -> bool:
    if "linkedin" in str(item.get("via") or "").lower():
        return True
    return any(
        isinstance(option, dict) and "linkedin.com" in str(option.get("link", ""))
        for option in item.get("apply_options") or []
    )


def _build_description(item: dict[str, Any]) -> str:
    description = item.get("description") or ""
    for highlight in item.get("job_highlights") or []:
        items = highlight.get("items") if isinstance(highlight, dict) else None
        if isinstance(items, list):
            description += f"\n\n{highlight.get('title', '')}:\n" + "\n".join(str(i) for i in items)
    return description.strip()[:DESCRIPTION_MAX_CHARS]


def create_google_jobs_adapter(settings: Settings) -> GoogleJobsAdapter:
    return GoogleJobsAdapter(SerpApiClient(settings.serpapi))


def create_linkedin_adapter(settings: Settings) -> LinkedInJobsAdapter:
    return LinkedInJobsAdapter(SerpApiClient(settings.serpapi))
