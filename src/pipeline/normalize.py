"""Text normalization shared by adapters, dedup and filters.

Every helper here is pure and total: malformed input yields a neutral value
("Unknown ...", None, or ``now``) rather than an exception.
"""

import hashlib
import re
from datetime import datetime, timedelta

from src.core.schemas import Salary, utc_now

_CURRENCY_SYMBOLS: tuple[tuple[str, str], ...] = (("$", "USD"), ("€", "EUR"), ("£", "GBP"))

# Checked in order; the first period whose markers appear wins.
_PERIOD_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("hourly", ("/hr", "per hour", "hourly", "an hour")),
    ("daily", ("/day", "per day", "daily", "a day")),
    ("weekly", ("/wk", "per week", "weekly", "a week")),
    ("monthly", ("/mo", "per month", "monthly", "a month")),
    ("yearly", ("/yr", "per year", "annually", "yearly", "a year")),
)

_COMPANY_SUFFIXES: tuple[str, ...] = ("Inc.", "Inc", "LLC", "Ltd.", "Ltd", "Corp.", "Corp", "Co.", "Co")

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_PARENS_RE = re.compile(r"\(.*?\)")
_WS_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[^\w\s]")

_RELATIVE_UNITS: tuple[tuple[re.Pattern[str], timedelta], ...] = (
    (re.compile(r"(\d+)\s*hour"), timedelta(hours=1)),
    (re.compile(r"(\d+)\s*day"), timedelta(days=1)),
    (re.compile(r"(\d+)\s*week"), timedelta(weeks=1)),
    (re.compile(r"(\d+)\s*month"), timedelta(days=30)),
)


def normalize_salary(text: str | None) -> Salary | None:
    """Parse free-form salary text such as "$80,000 - $120,000 a year".

    Yearly figures under 1000 are read as thousands ("$80K - $120K").
    Returns None when no positive amount can be found.
    """
    if not text:
        return None
    cleaned = text.replace(",", "").lower()

    currency = "USD"
    for symbol, code in _CURRENCY_SYMBOLS:
        if symbol in cleaned:
            currency = code
            break

    period = "yearly"
    for name, markers in _PERIOD_MARKERS:
        if any(marker in cleaned for marker in markers):
            period = name
            break

    numbers = [float(n) for n in _NUMBER_RE.findall(cleaned)]
    if not numbers:
        return None

    low: float | None
    high: float | None
    if len(numbers) == 1:
        value = numbers[0]
        low, high = (None, value) if "up to" in cleaned else (value, None)
    else:
        low, high = min(numbers[0], numbers[1]), max(numbers[0], numbers[1])

    if period == "yearly":
        low = _thousands(low)
        high = _thousands(high)

    if not low and not high:
        return None
    return Salary(min=low, max=high, currency=currency, period=period)


def _thousands(value: float | None) -> float | None:
    if value is not None and value < 1000:
        return value * 1000
    return value


def normalize_location(location: str | None) -> str:
    """Canonical display location: "Remote", or at most "City, Region"."""
    if not location or not location.strip():
        return "Unknown"
    normalized = _WS_RE.sub(" ", location.strip())
    if "remote" in normalized.lower():
        return "Remote"
    normalized = _PARENS_RE.sub("", normalized).strip()
    parts = [p.strip() for p in normalized.split(",")]
    if len(parts) > 2:
        return f"{parts[0]}, {parts[1]}"
    return normalized


def normalize_title(title: str | None) -> str:
    if not title or not title.strip():
        return "Unknown Position"
    normalized = _WS_RE.sub(" ", title.strip())
    return _PARENS_RE.sub("", normalized).strip()


def normalize_company(company: str | None) -> str:
    """Collapse whitespace and strip a trailing legal suffix (Inc, LLC, ...)."""
    if not company or not company.strip():
        return "Unknown Company"
    normalized = _WS_RE.sub(" ", company.strip())
    for suffix in _COMPANY_SUFFIXES:
        normalized = re.sub(rf"\s+{re.escape(suffix)}$", "", normalized, flags=re.IGNORECASE)
    return normalized.strip()


def comparison_key(text: str | None) -> str:
    """Lower-case, drop punctuation, collapse whitespace. Used for equality checks."""
    if not text:
        return ""
    return _WS_RE.sub(" ", _PUNCT_RE.sub(" ", text.lower())).strip()


def generate_job_id(source: str, url: str) -> str:
    """Deterministic id: ``<source>-<first 12 hex of md5(source-url)>``."""
    digest = hashlib.md5(f"{source}-{url}".encode()).hexdigest()
    return f"{source}-{digest[:12]}"


def parse_posted_date(text: str | None, now: datetime | None = None) -> datetime:
    """Resolve relative dates ("3 days ago", "30+ days ago", "Just posted")."""
    now = now or utc_now()
    if not text:
        return now
    lowered = text.lower()
    if "just posted" in lowered or "just now" in lowered or "today" in lowered:
        return now
    if "30+ day" in lowered:
        return now - timedelta(days=30)
    for pattern, unit in _RELATIVE_UNITS:
        match = pattern.search(lowered)
        if match:
            return now - unit * int(match.group(1))
    return now


def truncate_description(description: str, max_length: int = 500) -> str:
    """Cut at the last word boundary before ``max_length`` and append "..."."""
    if not description or len(description) <= max_length:
        return description
    truncated = description[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + "..."
    return truncated + "..."


YEARLY_MULTIPLIERS: dict[str, int] = {
    "hourly": 2080,
    "daily": 260,
    "weekly": 52,
    "monthly": 12,
    "yearly": 1,
}


def annualize(amount: float | None, period: str) -> float | None:
    """Convert an amount quoted per ``period`` to a yearly figure."""
    if amount is None:
        return None
    return amount * YEARLY_MULTIPLIERS.get(period, 1)
