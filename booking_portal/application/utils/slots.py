from __future__ import annotations

from datetime import date, datetime

from booking_portal.application.utils.calendar_dates import add_days, minutes_since_midnight
from booking_portal.application.utils.time_of_day import format_time_label, parse_time_of_day
from booking_portal.domain.entities.working_hours import WorkingHoursIndex

DEFAULT_STEP_MINUTES = 60
DEFAULT_DURATION_MINUTES = 30
DEFAULT_HORIZON_DAYS = 30


def slots_for_date(
    day: date,
    index: WorkingHoursIndex,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> list[str]:
    """
    Bookable start labels for `day`, recomputed on every call.

    Starts every `step_minutes` from the opening time; a start is kept
    only while start + `duration_minutes` still fits before closing.
    """
    entry = index.for_date(day)
    if not entry or not entry.is_available or not entry.start_time or not entry.end_time:
        return []

    start = parse_time_of_day(entry.start_time)
    end = parse_time_of_day(entry.end_time)
    if start is None or end is None or start >= end:
        return []
    if step_minutes <= 0 or duration_minutes <= 0:
        return []

    labels: list[str] = []
    current = start
    while current + duration_minutes <= end:
        labels.append(format_time_label(current))
        current += step_minutes
    return labels


def is_past_for_today(day: date, label: str, now: datetime) -> bool:
    if day != now.date():
        return False
    minutes = parse_time_of_day(label)
    if minutes is None:
        return True
    return minutes <= minutes_since_midnight(now)


def filter_past_for_today(day: date, slots: list[str], now: datetime) -> list[str]:
    """Drop slots that have already started when `day` is today. Evaluate per request; `now` moves."""
    if day != now.date():
        return list(slots)
    return [label for label in slots if not is_past_for_today(day, label, now)]


def next_available_date(
    from_date: date,
    index: WorkingHoursIndex,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    require_slots: bool = True,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> date | None:
    """
    First day after `from_date`, at most `horizon_days` ahead, that is open.

    With `require_slots` a day only counts when it also yields at least one
    slot; otherwise the availability flag alone decides.
    """
    for offset in range(1, horizon_days + 1):
        candidate = add_days(from_date, offset)
        if not index.is_open(candidate):
            continue
        if require_slots and not slots_for_date(candidate, index, step_minutes, duration_minutes):
            continue
        return candidate
    return None
