"""Core data models for the job-search aggregation pipeline.

Every model serializes with camelCase aliases (the HTTP boundary speaks JSON in
camelCase) but is populated and read with snake_case names in Python.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.errors import ErrorCode

JobSource = Literal["google_jobs", "linkedin", "indeed"]
JobType = Literal["full-time", "part-time", "contract", "temporary", "internship"]
SalaryPeriod = Literal["hourly", "daily", "weekly", "monthly", "yearly"]

JOB_SOURCES: tuple[str, ...] = ("google_jobs", "linkedin", "indeed")
JOB_TYPES: tuple[str, ...] = ("full-time", "part-time", "contract", "temporary", "internship")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class Salary(ApiModel):
    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None
    currency: str = "USD"
    period: SalaryPeriod = "yearly"


class RawJob(ApiModel):
    """A job posting as delivered by an adapter, before scoring.

    Frozen. Scoring wraps it into a ScoredJob instead of mutating it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    company: str = ""
    location: str = ""
    salary: Salary | None = None
    description: str = ""
    url: str = ""
    source: str
    job_type: str | None = None
    posted_date: datetime = Field(default_factory=utc_now)
    scraped_at: datetime = Field(default_factory=utc_now)
    external_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScoreComponent(ApiModel):
    """One weighted scoring component (location, title, salary, source)."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=100.0)
    weight: float
    weighted: float
    confidence: float = 0.0
    reasons: list[str] = Field(default_factory=list)


class ScoreBreakdown(ApiModel):
    model_config = ConfigDict(frozen=True)

    location: ScoreComponent
    title_relevance: ScoreComponent
    salary: ScoreComponent
    source_quality: ScoreComponent
    total: float
    overall_confidence: float = 0.0
    top_reasons: list[str] = Field(default_factory=list)


class ScoredJob(RawJob):
    """A RawJob paired with its weighted score and (after ranking) its rank."""

    score: float = Field(ge=0.0, le=100.0)
    score_breakdown: ScoreBreakdown
    rank: int | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SalaryRange(ApiModel):
    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None
    currency: str | None = None


class SearchCriteria(ApiModel):
    """A validated, normalized search request. Build via validate_search_criteria."""

    model_config = ConfigDict(frozen=True)

    query: str
    location: str | None = None
    preferred_locations: tuple[str, ...] | None = None
    sources: tuple[JobSource, ...] | None = None
    job_types: tuple[JobType, ...] | None = None
    salary: SalaryRange | None = None
    keywords: tuple[str, ...] | None = None
    exclude_keywords: tuple[str, ...] | None = None
    posted_within_days: float | None = None
    max_results: int = 25


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class ScraperConfig(ApiModel):
    """What an adapter is asked to fetch."""

    model_config = ConfigDict(frozen=True)

    search_query: str
    location: str = ""
    max_results: int = Field(default=25, ge=1, le=100)
    job_type: str | None = None
    posted_within_days: float | None = None


class ScraperErrorInfo(ApiModel):
    """A reported (not raised) failure of one source."""

    model_config = ConfigDict(frozen=True)

    source: str
    message: str
    code: ErrorCode | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class ScrapeResult(ApiModel):
    """Outcome of one adapter run. Counts are kept consistent by build_scrape_result."""

    model_config = ConfigDict(frozen=True)

    source: str
    jobs: list[RawJob] = Field(default_factory=list)
    scraped_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: list[ScraperErrorInfo] = Field(default_factory=list)
    scraped_at: datetime = Field(default_factory=utc_now)
    duration_ms: float = 0.0


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class SearchMetrics(ApiModel):
    """One executed search. Append-only, immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    search_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    query: str
    location: str | None = None
    sources: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0
    jobs_found: int = 0
    successful_sources: list[str] = Field(default_factory=list)
    failed_sources: list[str] = Field(default_factory=list)
    errors: int = 0
    cached: bool = False


class QueryCount(ApiModel):
    query: str
    count: int


class LocationCount(ApiModel):
    location: str
    count: int


class AggregatedMetrics(ApiModel):
    total_searches: int = 0
    average_duration: float = 0.0
    average_jobs_found: float = 0.0
    success_rate: float = 0.0
    cache_hit_rate: float = 0.0
    source_success_rates: dict[str, float] = Field(default_factory=dict)
    error_rate: float = 0.0
    popular_queries: list[QueryCount] = Field(default_factory=list)
    popular_locations: list[LocationCount] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ScoreDistribution(ApiModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class SearchMetadata(ApiModel):
    total_jobs_found: int
    unique_jobs: int
    duplicates_removed: int
    successful_sources: list[str]
    failed_sources: list[str]
    partial_results: bool
    search_duration_ms: float
    total_duration_ms: float
    average_score: float
    score_distribution: ScoreDistribution
    cached: bool = False


class SearchJobsData(ApiModel):
    jobs: list[ScoredJob]
    metadata: SearchMetadata
    warnings: list[str] | None = None
    errors: list[ScraperErrorInfo] | None = None


class SearchJobsSuccess(ApiModel):
    success: Literal[True] = True
    data: SearchJobsData
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())


class ErrorBody(ApiModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class SearchJobsFailure(ApiModel):
    success: Literal[False] = False
    error: ErrorBody
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())


SearchJobsResponse = SearchJobsSuccess | SearchJobsFailure


def error_response(
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
) -> SearchJobsFailure:
    return SearchJobsFailure(error=ErrorBody(code=code.value, message=message, details=details))
