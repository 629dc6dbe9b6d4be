from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from booking_portal.domain.entities.working_hours import WEEKDAY_NAMES

_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_iso_date(value: str | None) -> date | None:
    """
    Parse "YYYY-MM-DD" into a local calendar date.

    Built from the year/month/day components only, never through a
    datetime parse, so no timezone can shift the day.
    """
    if not value or not isinstance(value, str):
        return None
    match = _ISO_DATE_PATTERN.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_iso(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_grid(year: int, month: int, cells: int = 35) -> list[date]:
    """Calendar cells for a month view, weeks starting on Monday."""
    first = date(year, month, 1)
    start = first - timedelta(days=first.weekday())
    return [start + timedelta(days=i) for i in range(cells)]
