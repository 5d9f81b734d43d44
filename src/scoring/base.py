"""Shared types for the per-component scoring strategies."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from src.core.schemas import RawJob, SearchCriteria


@dataclass(frozen=True)
class ScoringCriteria:
    """What a job is scored against, derived from one search request."""

    preferred_locations: tuple[str, ...] = ()
    title_keywords: tuple[str, ...] = ()
    min_salary: float | None = None
    max_salary: float | None = None
    currency: str | None = None

    @classmethod
    def from_search(cls, criteria: SearchCriteria) -> "ScoringCriteria":
        """Preferred locations default to the search location; keywords to the query."""
        if criteria.preferred_locations:
            locations = tuple(criteria.preferred_locations)
        elif criteria.location:
            locations = (criteria.location,)
        else:
            locations = ()
        keywords = tuple(criteria.keywords) if criteria.keywords else (criteria.query,)
        salary = criteria.salary
        return cls(
            preferred_locations=locations,
            title_keywords=keywords,
            min_salary=salary.min if salary else None,
            max_salary=salary.max if salary else None,
            currency=salary.currency if salary else None,
        )


@dataclass(frozen=True)
class StrategyResult:
    score: float
    confidence: float
    reasons: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)


class ScoringStrategy(Protocol):
    """One scoring component. Implementations are stateless and never raise."""

    name: str

    def score(self, job: RawJob, criteria: ScoringCriteria) -> StrategyResult: ...
