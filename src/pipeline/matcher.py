"""Filter chain applied to merged, deduplicated postings.

Filter order:
  1. ExcludeKeywordsFilter  - fast, title-only, case-insensitive
  2. JobTypeFilter          - postings with an unknown type pass
  3. PostedWithinFilter     - by posted_date against a fixed reference time
  4. SalaryRangeFilter      - annualized overlap; undisclosed salaries pass

Scoring still penalizes undisclosed or mismatched values; filters only drop
postings that are known not to fit.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from src.core.schemas import RawJob, SalaryRange, SearchCriteria, utc_now
from src.pipeline.normalize import annualize

logger = logging.getLogger(__name__)

# A filter is a callable that takes jobs and returns a subset.
Filter = Callable[[list[RawJob]], list[RawJob]]


class ExcludeKeywordsFilter:
    """Remove jobs whose title contains any excluded keyword (case-insensitive)."""

    def __init__(self, exclude_keywords: list[str] | tuple[str, ...]) -> None:
        self._keywords = [kw.lower().strip() for kw in exclude_keywords if kw.strip()]

    def __call__(self, jobs: list[RawJob]) -> list[RawJob]:
        if not self._keywords:
            return jobs
        result = [j for j in jobs if not self._title_matches(j.title)]
        _log_removed(self, jobs, result)
        return result

    def _title_matches(self, title: str) -> bool:
        title_lower = title.lower()
        return any(kw in title_lower for kw in self._keywords)


class JobTypeFilter:
    """Keep jobs whose type is one of the requested types, or unknown."""

    def __init__(self, job_types: list[str] | tuple[str, ...]) -> None:
        self._types = {t.lower() for t in job_types}

    def __call__(self, jobs: list[RawJob]) -> list[RawJob]:
        if not self._types:
            return jobs
        result = [j for j in jobs if j.job_type is None or j.job_type.lower() in self._types]
        _log_removed(self, jobs, result)
        return result


class PostedWithinFilter:
    """Drop jobs posted more than ``days`` before ``now``."""

    def __init__(self, days: float, now: datetime | None = None) -> None:
        self._cutoff = (now or utc_now()) - timedelta(days=days)

    def __call__(self, jobs: list[RawJob]) -> list[RawJob]:
        result = [j for j in jobs if _aware(j.posted_date) >= self._cutoff]
        _log_removed(self, jobs, result)
        return result


class SalaryRangeFilter:
    """Drop jobs whose annualized salary range cannot overlap the wanted range.

    Jobs without a salary, or quoted in a different currency, pass through.
    """

    def __init__(self, wanted: SalaryRange) -> None:
        self._wanted = wanted

    def __call__(self, jobs: list[RawJob]) -> list[RawJob]:
        if self._wanted.min is None and self._wanted.max is None:
            return jobs
        result = [j for j in jobs if self._overlaps(j)]
        _log_removed(self, jobs, result)
        return result

    def _overlaps(self, job: RawJob) -> bool:
        salary = job.salary
        if salary is None:
            return True
        currency = self._wanted.currency
        if currency and salary.currency and currency.upper() != salary.currency.upper():
            return True
        low = annualize(salary.min, salary.period)
        high = annualize(salary.max, salary.period)
        top = high if high is not None else low
        bottom = low if low is not None else high
        if top is None or bottom is None:
            return True
        if self._wanted.min is not None and top < self._wanted.min:
            return False
        if self._wanted.max is not None and bottom > self._wanted.max:
            return False
        return True


def build_filters(criteria: SearchCriteria, now: datetime | None = None) -> list[Filter]:
    """Filters implied by the request, in chain order."""
    filters: list[Filter] = []
    if criteria.exclude_keywords:
        filters.append(ExcludeKeywordsFilter(criteria.exclude_keywords))
    if criteria.job_types:
        filters.append(JobTypeFilter(criteria.job_types))
    if criteria.posted_within_days is not None:
        filters.append(PostedWithinFilter(criteria.posted_within_days, now=now))
    if criteria.salary is not None:
        filters.append(SalaryRangeFilter(criteria.salary))
    return filters


def run_filter_chain(jobs: list[RawJob], filters: list[Filter]) -> list[RawJob]:
    """Apply filters in order, returning the surviving jobs."""
    result = jobs
    for f in filters:
        result = f(result)
    return result


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _log_removed(f: object, before: list[RawJob], after: list[RawJob]) -> None:
    removed = len(before) - len(after)
    if removed:
        logger.debug("%s: removed %d jobs", type(f).__name__, removed)
