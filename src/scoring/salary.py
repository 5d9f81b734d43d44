"""Salary scoring: position of the job's annualized midpoint against the wanted range."""

import logging
import math

from src.core.schemas import RawJob
from src.pipeline.normalize import annualize
from src.scoring.base import ScoringCriteria, StrategyResult

logger = logging.getLogger(__name__)


class SalaryStrategy:
    name = "salary"

    def score(self, job: RawJob, criteria: ScoringCriteria) -> StrategyResult:
        if not criteria.min_salary and not criteria.max_salary:
            return StrategyResult(score=50, confidence=0.3, reasons=["No salary preferences specified"])
        if job.salary is None:
            return StrategyResult(
                score=40,
                confidence=0.4,
                reasons=["Salary not disclosed"],
                details={"has_job_salary": False},
            )

        job_min = annualize(job.salary.min or None, job.salary.period)
        job_max = annualize(job.salary.max or None, job.salary.period)
        if not job_min and not job_max:
            return StrategyResult(
                score=40,
                confidence=0.4,
                reasons=["Could not parse salary information"],
                details={"parse_error": True},
            )

        low = job_min or job_max or 0.0
        high = job_max or job_min or 0.0
        midpoint = (low + high) / 2
        wanted_min = criteria.min_salary or 0.0
        wanted_max = criteria.max_salary or math.inf
        label = _format_range(job_min, job_max, job.salary.currency)

        if wanted_min <= midpoint <= wanted_max:
            return StrategyResult(
                score=_in_range_score(midpoint, wanted_min, wanted_max),
                confidence=1.0,
                reasons=[f"Salary within target range: {label}"],
                details={"alignment": "within"},
            )

        if midpoint > wanted_max:
            diff = (midpoint - wanted_max) / wanted_max * 100
            reasons = [f"Salary above target: {label}"]
            if diff > 20:
                reasons.append(f"{diff:.0f}% above target")
            return StrategyResult(
                score=min(100.0, 90 + diff * 0.5),
                confidence=0.95,
                reasons=reasons,
                details={"alignment": "above", "percent_difference": diff},
            )

        diff = (wanted_min - midpoint) / wanted_min * 100
        if diff < 10:
            score = 80.0
        elif diff < 20:
            score = 60.0
        elif diff < 30:
            score = 40.0
        else:
            score = 20.0
        reasons = [f"Salary below target: {label}"]
        if diff > 20:
            reasons.append(f"{diff:.0f}% below target")
        return StrategyResult(
            score=score,
            confidence=0.9,
            reasons=reasons,
            details={"alignment": "below", "percent_difference": diff},
        )


def _in_range_score(midpoint: float, wanted_min: float, wanted_max: float) -> float:
    span = wanted_max - wanted_min
    if span == 0:
        return 100.0
    position = (midpoint - wanted_min) / span
    if position > 0.7:
        return 100.0
    if position > 0.5:
        return 95.0
    if position > 0.3:
        return 90.0
    return 85.0


def _format_range(low: float | None, high: float | None, currency: str) -> str:
    def fmt(n: float) -> str:
        return f"{currency} {n / 1000:.0f}k"

    if low and high and low != high:
        return f"{fmt(low)} - {fmt(high)}"
    if low:
        return f"{fmt(low)}+"
    if high:
        return f"up to {fmt(high)}"
    return "Not specified"
