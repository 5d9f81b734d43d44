"""Abstract base class for source adapters."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.core.errors import classify_error
from src.core.schemas import RawJob, ScrapeResult, ScraperConfig, ScraperErrorInfo

logger = logging.getLogger(__name__)


class ScraperAdapter(ABC):
    """Base class that every source adapter must implement.

    ``scrape`` never raises for source-side problems (blocked pages, missing
    credentials, upstream errors); those are reported in ``ScrapeResult.errors``.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Source this adapter serves (e.g. 'indeed')."""

    @abstractmethod
    async def scrape(self, config: ScraperConfig) -> ScrapeResult:
        """Fetch up to ``config.max_results`` raw jobs."""

    async def close(self) -> None:
        """Release held resources. Safe to call more than once."""


def error_info(source: str, error: BaseException) -> ScraperErrorInfo:
    """Convert an exception raised inside an adapter into a reported error."""
    return ScraperErrorInfo(source=source, message=str(error) or type(error).__name__, code=classify_error(error))


def build_scrape_result(
    source: str,
    jobs: Sequence[RawJob],
    *,
    max_results: int,
    started: float,
    errors: Sequence[ScraperErrorInfo] = (),
    failed_count: int = 0,
) -> ScrapeResult:
    """Assemble a ScrapeResult with consistent counts.

    Args:
        source: Source name.
        jobs: Jobs parsed successfully; truncated to ``max_results``.
        max_results: Cap requested by the caller.
        started: ``time.monotonic()`` reading taken when the scrape began.
        errors: Reported (not raised) failures.
        failed_count: Items seen but not parsed.
    """
    kept = list(jobs[:max_results])
    return ScrapeResult(
        source=source,
        jobs=kept,
        scraped_count=len(kept) + failed_count,
        success_count=len(kept),
        failed_count=failed_count,
        errors=list(errors),
        duration_ms=(time.monotonic() - started) * 1000,
    )
