"""Calendar arithmetic for goal dates.

All dates are plain ``datetime.date`` values, so "midnight" is implicit:
there is no time-of-day to normalize away and no time zone to consider.

Month arithmetic follows native rollover semantics: a day that does not
exist in the target month spills over into the next one (Jan 31 + 1 month
is Mar 2 or Mar 3). This is accepted behaviour, not clamped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta

from .models import RepeatUnit

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


@dataclass(frozen=True)
class Parsed:
    """A date string that parsed cleanly."""

    value: date


@dataclass(frozen=True)
class Defaulted:
    """A date string that failed to parse; ``value`` is the fallback (today)."""

    value: date
    raw: str


DateResult = Parsed | Defaulted


def at_midnight(year: int, month_index: int, day: int) -> date:
    """Build a date from a zero-based month index, rolling over out-of-range parts.

    ``at_midnight(2024, 12, 1)`` is 2025-01-01 and ``at_midnight(2024, 1, 30)``
    is 2024-03-01, mirroring how a civil-time constructor normalizes overflow.
    """
    years, month_index = divmod(month_index, 12)
    first = date(year + years, month_index + 1, 1)
    return first + timedelta(days=day - 1)


def today() -> date:
    return date.today()


def days_between(a: date, b: date) -> int:
    """Whole days between two dates, never negative."""
    return abs((a - b).days)


def effective_amount(amount: object) -> int:
    """Amount used in arithmetic: anything that is not a positive int counts as 1."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        return 1
    return amount


def add_interval(start: date, amount: object, unit: RepeatUnit | str) -> date:
    """Advance ``start`` by ``amount`` days, weeks or months."""
    unit = RepeatUnit(unit) if not isinstance(unit, RepeatUnit) else unit
    n = effective_amount(amount)

    if unit is RepeatUnit.DAY:
        return start + timedelta(days=n)
    if unit is RepeatUnit.WEEK:
        return start + timedelta(days=n * 7)
    return at_midnight(start.year, start.month - 1 + n, start.day)


def parse_date_or_default(value: str | None, *, fallback: date | None = None) -> DateResult:
    """Parse ``YYYY-M-D`` (month/day may be one or two digits).

    Any failure, including a calendar-invalid date such as ``2024-02-30``,
    recovers silently to ``fallback`` (today by default). Callers get a
    tagged result so the fallback can be reported, but it never raises.
    """
    if fallback is None:
        fallback = today()

    text = (value or "").strip()
    match = DATE_PATTERN.match(text)
    if not match:
        logger.debug("Unparseable date %r, using %s", text, fallback)
        return Defaulted(fallback, text)

    year, month, day = (int(part) for part in match.groups())
    try:
        return Parsed(date(year, month, day))
    except ValueError:
        logger.debug("Invalid calendar date %r, using %s", text, fallback)
        return Defaulted(fallback, text)


def format_goal(value: date) -> str:
    """Zero-padded ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
