"""Request validation for job searches.

Contract: validate_search_criteria never raises. Every violation is collected
so callers get the full error list in one round trip. Unknown fields are
ignored. Optional fields stay None when absent; only max_results is defaulted.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from src.core.schemas import JOB_SOURCES, JOB_TYPES, SalaryRange, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 25


@dataclass(frozen=True)
class ValidationResult:
    """Either ``valid`` with ``data``, or not valid with ``errors``."""

    valid: bool
    data: SearchCriteria | None = None
    errors: list[str] = field(default_factory=list)


def validate_search_criteria(payload: Any) -> ValidationResult:
    """Validate an untyped JSON payload into SearchCriteria."""
    if not isinstance(payload, dict):
        return ValidationResult(valid=False, errors=["Request body must be an object"])

    errors: list[str] = []

    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        errors.append("query is required and must be a non-empty string")

    location = payload.get("location")
    if location is not None and not isinstance(location, str):
        errors.append("location must be a string")

    preferred = payload.get("preferredLocations")
    _check_string_list(preferred, "preferredLocations", errors)

    sources = payload.get("sources")
    _check_enum_list(sources, "sources", JOB_SOURCES, "Valid sources are", errors)

    job_types = payload.get("jobTypes")
    _check_enum_list(job_types, "jobTypes", JOB_TYPES, "Valid types are", errors)

    salary = payload.get("salary")
    if salary is not None:
        _check_salary(salary, errors)

    keywords = payload.get("keywords")
    _check_string_list(keywords, "keywords", errors)

    exclude = payload.get("excludeKeywords")
    _check_string_list(exclude, "excludeKeywords", errors)

    posted = payload.get("postedWithinDays")
    if posted is not None and not (_is_number(posted) and 1 <= posted <= 365):
        errors.append("postedWithinDays must be a number between 1 and 365")

    max_results = payload.get("maxResults")
    if max_results is not None and not (_is_whole_number(max_results) and 1 <= max_results <= 100):
        errors.append("maxResults must be a number between 1 and 100")

    timeout_ms = payload.get("timeoutMs")
    if timeout_ms is not None and not (_is_number(timeout_ms) and timeout_ms > 0):
        errors.append("timeoutMs must be a positive number")

    if errors:
        logger.debug("Rejected search request: %s", "; ".join(errors))
        return ValidationResult(valid=False, errors=errors)

    criteria = SearchCriteria(
        query=query.strip(),
        location=location.strip() if location is not None else None,
        preferred_locations=_as_tuple(preferred),
        sources=_as_tuple(sources),
        job_types=_as_tuple(job_types),
        salary=SalaryRange(**salary) if salary is not None else None,
        keywords=_as_tuple(keywords),
        exclude_keywords=_as_tuple(exclude),
        posted_within_days=posted,
        max_results=int(max_results) if max_results is not None else DEFAULT_MAX_RESULTS,
    )
    return ValidationResult(valid=True, data=criteria)


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is not a number here.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_whole_number(value: Any) -> bool:
    # Large JSON integers overflow float(); ints are whole already.
    if isinstance(value, float):
        return value.is_integer()
    return _is_number(value)


def _is_float(value: Any) -> bool:
    """A number that converts to a finite float."""
    if not _is_number(value):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _as_tuple(value: list[Any] | None) -> tuple[Any, ...] | None:
    return tuple(value) if value is not None else None


def _check_string_list(value: Any, name: str, errors: list[str]) -> None:
    if value is None:
        return
    if not isinstance(value, list):
        errors.append(f"{name} must be an array")
    elif not all(isinstance(item, str) for item in value):
        errors.append(f"{name} must be an array of strings")


def _check_enum_list(
    value: Any,
    name: str,
    allowed: tuple[str, ...],
    hint: str,
    errors: list[str],
) -> None:
    if value is None:
        return
    if not isinstance(value, list):
        errors.append(f"{name} must be an array")
        return
    invalid = [str(item) for item in value if item not in allowed]
    if invalid:
        errors.append(f"Invalid {name}: {', '.join(invalid)}. {hint}: {', '.join(allowed)}")


def _check_salary(salary: Any, errors: list[str]) -> None:
    if not isinstance(salary, dict):
        errors.append("salary must be an object")
        return
    low = salary.get("min")
    high = salary.get("max")
    currency = salary.get("currency")
    if low is not None and not _is_float(low):
        errors.append("salary.min must be a number")
    if high is not None and not _is_float(high):
        errors.append("salary.max must be a number")
    if _is_float(low) and _is_float(high) and low > high:
        errors.append("salary.min cannot be greater than salary.max")
    if currency is not None and not isinstance(currency, str):
        errors.append("salary.currency must be a string")
