"""ISO-8601 week keys used to partition the shopping cart.

A week key has the form ``"<ISO year>-<two digit ISO week>"``, e.g. ``"2025-02"``.
Weeks start on Monday and week 1 is the week holding the year's first
Thursday, so the ISO year of a date can differ from its calendar year around
New Year (Dec 30, 2024 belongs to ``"2025-01"``).
"""
import re
from datetime import date, datetime, timedelta, tzinfo
from typing import List, Optional, Tuple

from mealcart.config.settings import get_settings

_WEEK_ID_RE = re.compile(r"^(\d{4})-(\d{2})$")


def week_id(day: date) -> str:
    """Return the ISO week key for a date."""
    if isinstance(day, datetime):
        day = day.date()
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-{iso_week:02d}"


def current_week_id(tz: Optional[tzinfo] = None) -> str:
    """Return the week key for today, as seen from ``tz`` (the configured timezone if omitted)."""
    return week_id(datetime.now(tz or get_settings().tzinfo).date())


def parse_week_id(value: str) -> Tuple[int, int]:
    """
    Split a week key into ``(iso_year, iso_week)``.

    Raises:
        ValueError: If the key is malformed or names a week the year lacks
            (week 53 only exists in long ISO years).
    """
    if not isinstance(value, str):
        raise ValueError(f"Week id must be a string, got {type(value).__name__}")
    match = _WEEK_ID_RE.match(value)
    if not match:
        raise ValueError(f"Week id '{value}' must look like YYYY-WW")
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError:
        raise ValueError(f"Week id '{value}' does not exist in ISO year {year}")
    return year, week


def week_start(value: str) -> date:
    """Return the Monday that opens the given week."""
    year, week = parse_week_id(value)
    return date.fromisocalendar(year, week, 1)


def week_days(value: str) -> List[date]:
    """Return the seven dates, Monday through Sunday, of the given week."""
    monday = week_start(value)
    return [monday + timedelta(days=offset) for offset in range(7)]


def shift_week(value: str, weeks: int) -> str:
    """Return the week key ``weeks`` weeks after (or before) ``value``."""
    return week_id(week_start(value) + timedelta(weeks=weeks))
