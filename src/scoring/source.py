"""Source quality scoring: per-source base rating plus posting-completeness bonuses."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from src.core.schemas import RawJob, utc_now
from src.scoring.base import ScoringCriteria, StrategyResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRating:
    base_score: float
    reliability: float
    description: str


SOURCE_RATINGS: dict[str, SourceRating] = {
    "linkedin": SourceRating(90, 0.95, "Professional network with verified companies"),
    "indeed": SourceRating(85, 0.90, "Large job board with diverse listings"),
    "google_jobs": SourceRating(88, 0.93, "Aggregated from multiple sources"),
}

DETAILED_DESCRIPTION_CHARS = 200


class SourceQualityStrategy:
    name = "source_quality"

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def score(self, job: RawJob, criteria: ScoringCriteria) -> StrategyResult:
        rating = SOURCE_RATINGS.get(job.source)
        if rating is None:
            return StrategyResult(
                score=50,
                confidence=0.5,
                reasons=["Unknown job source"],
                details={"source": job.source},
            )

        reasons = [f"Source: {job.source.capitalize()} - {rating.description}"]
        bonus = 0

        if job.salary is not None:
            bonus += 5
            reasons.append("Salary information provided (+5 points)")

        if len(job.description) > DETAILED_DESCRIPTION_CHARS:
            bonus += 3
            reasons.append("Detailed job description (+3 points)")

        age_days = self._age_days(job.posted_date)
        if age_days <= 7:
            bonus += 5
            reasons.append("Recently posted (within 7 days) (+5 points)")
        elif age_days <= 14:
            bonus += 3
            reasons.append("Posted within 2 weeks (+3 points)")
        elif age_days > 30:
            bonus -= 5
            reasons.append("Older posting (30+ days) (-5 points)")

        if job.company and job.company != "Unknown Company" and len(job.company) > 2:
            bonus += 2
            reasons.append("Valid company information (+2 points)")

        return StrategyResult(
            score=min(100.0, max(0.0, rating.base_score + bonus)),
            confidence=rating.reliability,
            reasons=reasons,
            details={
                "source": job.source,
                "base_score": rating.base_score,
                "bonus_points": bonus,
                "job_age_days": age_days,
            },
        )

    def _age_days(self, posted: datetime) -> int:
        if posted.tzinfo is None:
            posted = posted.replace(tzinfo=timezone.utc)
        return (self._clock() - posted).days
