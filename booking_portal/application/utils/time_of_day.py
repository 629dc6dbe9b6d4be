from __future__ import annotations

import re

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?:(?P<meridiem>[ap])\.?\s*m\.?)?$",
    re.IGNORECASE,
)


def parse_time_of_day(value: str | None) -> int | None:
    """
    Parse a wall-clock string into minutes since midnight.

    Accepts 12-hour labels ("9:00 AM", "9:30pm", "12 PM") and 24-hour
    "HH:MM" ("09:00", "17:30"). Returns None for anything unparsable.
    """
    if not value or not isinstance(value, str):
        return None
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hour = int(match.group("hour"))
    minute_raw = match.group("minute")
    meridiem = (match.group("meridiem") or "").lower()
    minute = int(minute_raw) if minute_raw is not None else 0

    if minute > 59:
        return None

    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12
        if meridiem == "p":
            hour += 12
    else:
        # Bare "9" is ambiguous without a meridiem
        if minute_raw is None or hour > 23:
            return None

    return hour * 60 + minute


def format_time_label(minutes: int) -> str:
    """Format minutes since midnight as "H:MM AM"."""
    minutes = minutes % MINUTES_PER_DAY
    hour24, minute = divmod(minutes, 60)
    meridiem = "PM" if hour24 >= 12 else "AM"
    hour = hour24 % 12 or 12
    return f"{hour}:{minute:02d} {meridiem}"


def add_minutes_to_label(label: str, minutes: int) -> str | None:
    start = parse_time_of_day(label)
    if start is None:
        return None
    return format_time_label(start + minutes)
