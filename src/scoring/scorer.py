"""Weighted multi-component scoring and ranking of raw jobs.

total = sum(component score * weight) over location, title relevance, salary
and source quality. Weights come from ScoringConfig and sum to 1.0, so the
total stays in 0-100.
"""

import logging
from collections.abc import Mapping

from src.core.config import ScoringConfig
from src.core.schemas import RawJob, ScoreBreakdown, ScoreComponent, ScoredJob, ScoreDistribution
from src.scoring.base import ScoringCriteria, ScoringStrategy, StrategyResult
from src.scoring.location import LocationStrategy
from src.scoring.salary import SalaryStrategy
from src.scoring.source import SourceQualityStrategy
from src.scoring.title import TitleRelevanceStrategy

logger = logging.getLogger(__name__)

TOP_REASONS = 5
HIGH_SCORE = 80.0
MEDIUM_SCORE = 50.0


class JobScorer:
    """Scores jobs against one ScoringCriteria with fixed weights."""

    def __init__(
        self,
        criteria: ScoringCriteria,
        weights: ScoringConfig | None = None,
        *,
        location: ScoringStrategy | None = None,
        title: ScoringStrategy | None = None,
        salary: ScoringStrategy | None = None,
        source: ScoringStrategy | None = None,
    ) -> None:
        self._criteria = criteria
        self._weights = weights or ScoringConfig()
        self._location = location or LocationStrategy()
        self._title = title or TitleRelevanceStrategy()
        self._salary = salary or SalaryStrategy()
        self._source = source or SourceQualityStrategy()

    @property
    def weights(self) -> ScoringConfig:
        return self._weights

    def score_job(self, job: RawJob) -> ScoredJob:
        w = self._weights
        parts: list[tuple[StrategyResult, float]] = [
            (self._location.score(job, self._criteria), w.location),
            (self._title.score(job, self._criteria), w.title_relevance),
            (self._salary.score(job, self._criteria), w.salary),
            (self._source.score(job, self._criteria), w.source_quality),
        ]
        components = [_component(result, weight) for result, weight in parts]
        total = sum(c.weighted for c in components)
        confidence = sum(result.confidence * weight for result, weight in parts)

        breakdown = ScoreBreakdown(
            location=components[0],
            title_relevance=components[1],
            salary=components[2],
            source_quality=components[3],
            total=total,
            overall_confidence=confidence,
            top_reasons=_top_reasons(parts),
        )
        return ScoredJob(
            **job.model_dump(),
            score=min(100.0, max(0.0, total)),
            score_breakdown=breakdown,
        )

    def score_jobs(self, jobs: list[RawJob]) -> list[ScoredJob]:
        """Score without reordering."""
        return [self.score_job(job) for job in jobs]


def rank_jobs(
    scored: list[ScoredJob],
    source_success_rates: Mapping[str, float] | None = None,
    limit: int | None = None,
) -> list[ScoredJob]:
    """Sort by score desc, then historical source success rate desc, then input order.

    Truncates to ``limit`` and assigns 1-based ranks.
    """
    rates = source_success_rates or {}
    # sorted() is stable: equal keys keep first-seen order.
    ordered = sorted(scored, key=lambda j: (-j.score, -rates.get(j.source, 0.0)))
    if limit is not None:
        ordered = ordered[:limit]
    return [job.model_copy(update={"rank": i}) for i, job in enumerate(ordered, start=1)]


def score_distribution(jobs: list[ScoredJob]) -> ScoreDistribution:
    high = sum(1 for j in jobs if j.score >= HIGH_SCORE)
    medium = sum(1 for j in jobs if MEDIUM_SCORE <= j.score < HIGH_SCORE)
    return ScoreDistribution(high=high, medium=medium, low=len(jobs) - high - medium)


def average_score(jobs: list[ScoredJob]) -> float:
    if not jobs:
        return 0.0
    return sum(j.score for j in jobs) / len(jobs)


def _component(result: StrategyResult, weight: float) -> ScoreComponent:
    score = min(100.0, max(0.0, result.score))
    return ScoreComponent(
        score=score,
        weight=weight,
        weighted=score * weight,
        confidence=result.confidence,
        reasons=list(result.reasons),
    )


def _top_reasons(parts: list[tuple[StrategyResult, float]]) -> list[str]:
    """Reasons ranked by score/100 * confidence * weight; top five, deduplicated."""
    ranked = sorted(
        (
            (result.score / 100 * result.confidence * weight, reason)
            for result, weight in parts
            for reason in result.reasons
        ),
        key=lambda item: item[0],
        reverse=True,
    )
    top = [reason for _, reason in ranked[:TOP_REASONS]]
    return list(dict.fromkeys(top))
