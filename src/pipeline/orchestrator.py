"""Orchestrator: validates, fans out to adapters, merges, scores, caches, records.

Data flow:
  1. Validate the request payload
  2. Cache lookup (key = normalized criteria); a hit skips 3-5
  3. One task per source, joined against a single deadline
  4. Merge in source order -> dedupe -> filter chain
  5. Score -> rank (score, source success rate, first seen) -> truncate
  6. Populate cache, append one analytics sample
"""

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.api.validation import validate_search_criteria
from src.core.config import Settings
from src.core.errors import ErrorCode
from src.core.schemas import (
    RawJob,
    ScrapeResult,
    ScraperConfig,
    ScraperErrorInfo,
    SearchCriteria,
    SearchJobsData,
    SearchJobsResponse,
    SearchJobsSuccess,
    SearchMetadata,
    SearchMetrics,
    error_response,
)
from src.pipeline.analytics import SearchAnalytics
from src.pipeline.cache import SearchCache
from src.pipeline.dedupe import deduplicate
from src.pipeline.matcher import build_filters, run_filter_chain
from src.platforms.base import ScraperAdapter, error_info
from src.platforms.registry import create_adapter
from src.scoring.base import ScoringCriteria
from src.scoring.scorer import JobScorer, average_score, rank_jobs, score_distribution

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[str], ScraperAdapter]

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred while searching for jobs"


@dataclass(frozen=True)
class SourceOutcome:
    """How one source fared in a fan-out."""

    source: str
    jobs: list[RawJob]
    errors: list[ScraperErrorInfo]

    @property
    def successful(self) -> bool:
        # Jobs win over errors; an empty, error-free run is still a success.
        return bool(self.jobs) or not self.errors


def _failed(source: str, message: str, code: ErrorCode) -> SourceOutcome:
    return SourceOutcome(source, [], [ScraperErrorInfo(source=source, message=message, code=code)])


def _from_result(source: str, result: ScrapeResult) -> SourceOutcome:
    return SourceOutcome(source, list(result.jobs), list(result.errors))


def new_search_id() -> str:
    return f"search_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class SearchPipeline:
    """Runs searches against the configured sources.

    Cache and analytics are injected so the HTTP app and tests share or isolate
    them explicitly. ``adapter_factory`` builds one fresh adapter per source
    per search; the pipeline closes it once its task finishes.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        cache: SearchCache[SearchJobsData] | None = None,
        analytics: SearchAnalytics | None = None,
        adapter_factory: AdapterFactory | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._cache: SearchCache[SearchJobsData] = cache or SearchCache(
            ttl_seconds=self._settings.cache.ttl_seconds,
            max_size=self._settings.cache.max_size,
        )
        self._analytics = analytics or SearchAnalytics(self._settings.analytics.max_metrics)
        self._adapter_factory = adapter_factory or self._default_factory
        # Timed-out scrapes keep running in the background until they settle.
        self._orphans: set[asyncio.Task[Any]] = set()
        self._closers: set[asyncio.Task[None]] = set()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> SearchCache[SearchJobsData]:
        return self._cache

    @property
    def analytics(self) -> SearchAnalytics:
        return self._analytics

    @property
    def pending_tasks(self) -> int:
        return len(self._orphans)

    def resolve_timeout_ms(self, requested: float | None) -> float:
        """Request value (default when absent), capped at the configured maximum."""
        pipeline = self._settings.pipeline
        return min(requested or pipeline.default_timeout_ms, pipeline.max_timeout_ms)

    async def search(self, payload: Any) -> SearchJobsResponse:
        """Validate ``payload`` and run the search. Never raises."""
        started = time.monotonic()
        try:
            validation = validate_search_criteria(payload)
            if not validation.valid or validation.data is None:
                return error_response(
                    ErrorCode.VALIDATION_FAILED,
                    "Invalid request data",
                    {"errors": validation.errors},
                )
            timeout_ms = self.resolve_timeout_ms(payload.get("timeoutMs"))
            return await self.run(validation.data, timeout_ms=timeout_ms, started=started)
        except Exception:
            logger.exception("Search failed unexpectedly")
            return error_response(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

    async def run(
        self,
        criteria: SearchCriteria,
        *,
        timeout_ms: float | None = None,
        started: float | None = None,
    ) -> SearchJobsSuccess:
        """Run an already-validated search."""
        started = started if started is not None else time.monotonic()
        timeout_ms = timeout_ms or self._settings.pipeline.default_timeout_ms
        search_id = new_search_id()
        sources = self._resolve_sources(criteria)

        key = self._cache.generate_key(criteria)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("Cache hit for '%s' (%s)", criteria.query, key[:50])
            data = cached.model_copy(
                update={
                    "metadata": cached.metadata.model_copy(
                        update={"cached": True, "total_duration_ms": _elapsed_ms(started)},
                    ),
                },
            )
            self._record(
                search_id, criteria, sources, data, started, errors=0, cached=True,
            )
            return SearchJobsSuccess(data=data)

        fan_out_started = time.monotonic()
        outcomes = await self._fan_out(sources, self._scraper_config(criteria), timeout_ms)
        search_duration_ms = _elapsed_ms(fan_out_started)

        successful = [o.source for o in outcomes if o.successful]
        failed = [o.source for o in outcomes if not o.successful]
        errors = [e for o in outcomes for e in o.errors]

        merged = [job for o in outcomes for job in o.jobs]
        unique, removed = deduplicate(merged, self._settings.pipeline.dedupe_threshold)
        filtered = run_filter_chain(unique, build_filters(criteria))

        scorer = JobScorer(ScoringCriteria.from_search(criteria), self._settings.scoring)
        ranked = rank_jobs(
            scorer.score_jobs(filtered),
            self._safe_success_rates(),
            limit=criteria.max_results,
        )

        metadata = SearchMetadata(
            total_jobs_found=len(merged),
            unique_jobs=len(unique),
            duplicates_removed=removed,
            successful_sources=successful,
            failed_sources=failed,
            partial_results=bool(failed),
            search_duration_ms=search_duration_ms,
            total_duration_ms=_elapsed_ms(started),
            average_score=average_score(ranked),
            score_distribution=score_distribution(ranked),
        )
        data = SearchJobsData(
            jobs=ranked,
            metadata=metadata,
            warnings=(
                [f"Some sources failed: {', '.join(failed)}. Results may be incomplete."]
                if failed
                else None
            ),
            errors=errors or None,
        )

        logger.info(
            "Search '%s': %d found, %d unique, %d after filters, %d returned (%s failed)",
            criteria.query, len(merged), len(unique), len(filtered), len(ranked),
            ", ".join(failed) or "none",
        )

        if successful:
            try:
                self._cache.set(key, data)
            except Exception:
                logger.exception("Failed to populate search cache")
        self._record(search_id, criteria, sources, data, started, errors=len(errors), cached=False)
        return SearchJobsSuccess(data=data)

    async def aclose(self) -> None:
        """Cancel scrapes still running after their deadline and close their adapters."""
        orphans = list(self._orphans)
        for task in orphans:
            task.cancel()
        if orphans:
            logger.info("Cancelling %d unfinished scrape task(s)", len(orphans))
            await asyncio.gather(*orphans, return_exceptions=True)
        # Done-callbacks schedule adapter closers; let them run.
        await asyncio.sleep(0)
        if self._closers:
            await asyncio.gather(*list(self._closers), return_exceptions=True)

    # --- Private helpers ---

    def _default_factory(self, source: str) -> ScraperAdapter:
        return create_adapter(source, self._settings)

    def _resolve_sources(self, criteria: SearchCriteria) -> list[str]:
        requested = criteria.sources or self._settings.pipeline.default_sources
        return list(dict.fromkeys(requested))

    @staticmethod
    def _scraper_config(criteria: SearchCriteria) -> ScraperConfig:
        job_types = criteria.job_types or ()
        return ScraperConfig(
            search_query=criteria.query,
            location=criteria.location or "",
            max_results=criteria.max_results,
            # Adapters take one type; several are narrowed by the filter chain.
            job_type=job_types[0] if len(job_types) == 1 else None,
            posted_within_days=criteria.posted_within_days,
        )

    async def _fan_out(
        self,
        sources: list[str],
        config: ScraperConfig,
        timeout_ms: float,
    ) -> list[SourceOutcome]:
        outcomes: dict[str, SourceOutcome] = {}
        tasks: dict[asyncio.Task[ScrapeResult], tuple[str, ScraperAdapter]] = {}

        for source in sources:
            try:
                adapter = self._adapter_factory(source)
            except Exception as e:
                logger.warning("No adapter for %s: %s", source, e)
                outcomes[source] = _failed(source, str(e), ErrorCode.SCRAPER_INVALID_CONFIG)
                continue
            task = asyncio.create_task(adapter.scrape(config), name=f"scrape:{source}")
            tasks[task] = (source, adapter)

        if tasks:
            try:
                done, pending = await asyncio.wait(tasks, timeout=timeout_ms / 1000)
            except asyncio.CancelledError:
                # The caller gave up; scrapes keep running but stay tracked.
                for task, (_, adapter) in tasks.items():
                    self._detach(task, adapter)
                raise
        else:
            done, pending = set(), set()

        finished: list[ScraperAdapter] = []
        for task in done:
            source, adapter = tasks[task]
            finished.append(adapter)
            if task.cancelled():
                outcomes[source] = _failed(source, f"{source} scrape was cancelled", ErrorCode.SCRAPER_FAILED)
                continue
            exc = task.exception()
            if exc is not None:
                logger.warning("%s adapter raised: %s", source, exc)
                outcomes[source] = SourceOutcome(source, [], [error_info(source, exc)])
            else:
                outcomes[source] = _from_result(source, task.result())

        for task in pending:
            source, adapter = tasks[task]
            logger.warning("%s did not finish within %.0fms", source, timeout_ms)
            outcomes[source] = _failed(
                source,
                f"{source} did not respond within {timeout_ms:.0f}ms",
                ErrorCode.SCRAPER_TIMEOUT,
            )
            self._detach(task, adapter)

        await asyncio.gather(*(_close_adapter(a) for a in finished))
        return [outcomes[s] for s in sources]

    def _detach(self, task: asyncio.Task[Any], adapter: ScraperAdapter) -> None:
        """Let a timed-out scrape finish on its own; discard its result, then close it."""
        self._orphans.add(task)

        def _settled(t: asyncio.Task[Any]) -> None:
            self._orphans.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.debug("Late %s failure discarded: %s", t.get_name(), t.exception())
            closer = asyncio.ensure_future(_close_adapter(adapter))
            self._closers.add(closer)
            closer.add_done_callback(self._closers.discard)

        task.add_done_callback(_settled)

    def _safe_success_rates(self) -> dict[str, float]:
        try:
            return self._analytics.source_success_rates()
        except Exception:
            logger.exception("Failed to read source success rates")
            return {}

    def _record(
        self,
        search_id: str,
        criteria: SearchCriteria,
        sources: list[str],
        data: SearchJobsData,
        started: float,
        *,
        errors: int,
        cached: bool,
    ) -> None:
        try:
            self._analytics.add_metric(
                SearchMetrics(
                    search_id=search_id,
                    query=criteria.query,
                    location=criteria.location,
                    sources=sources,
                    duration_ms=_elapsed_ms(started),
                    jobs_found=len(data.jobs),
                    successful_sources=data.metadata.successful_sources,
                    failed_sources=data.metadata.failed_sources,
                    errors=errors,
                    cached=cached,
                ),
            )
        except Exception:
            logger.exception("Failed to record search metrics")


async def _close_adapter(adapter: ScraperAdapter) -> None:
    try:
        await adapter.close()
    except Exception:
        logger.warning("Failed to close %s adapter", adapter.source_name, exc_info=True)


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000
