"""
Tests for wall-clock parsing, slot generation and next-available lookup.
"""

from __future__ import annotations

from datetime import date, datetime

from booking_portal.application.utils.calendar_dates import month_grid, parse_iso_date, shift_month
from booking_portal.application.utils.slots import (
    filter_past_for_today,
    is_past_for_today,
    next_available_date,
    slots_for_date,
)
from booking_portal.application.utils.time_of_day import (
    add_minutes_to_label,
    format_time_label,
    parse_time_of_day,
)
from booking_portal.domain.entities.working_hours import WorkingHoursEntry, WorkingHoursIndex

MONDAY = date(2025, 6, 2)


def _index(*entries: dict) -> WorkingHoursIndex:
    return WorkingHoursIndex.from_payload(list(entries))


def test_parse_time_of_day_accepts_12_and_24_hour_forms():
    assert parse_time_of_day("9:00 AM") == 9 * 60
    assert parse_time_of_day("9:30pm") == 21 * 60 + 30
    assert parse_time_of_day("12:00 AM") == 0
    assert parse_time_of_day("12:15 PM") == 12 * 60 + 15
    assert parse_time_of_day("12 PM") == 12 * 60
    assert parse_time_of_day("09:00") == 9 * 60
    assert parse_time_of_day("17:30") == 17 * 60 + 30


def test_parse_time_of_day_rejects_malformed_values():
    for value in (None, "", "soon", "25:00", "13:00 PM", "9:75 AM", "9", "0:00 AM"):
        assert parse_time_of_day(value) is None


def test_format_time_label_round_trips_through_parse():
    assert format_time_label(0) == "12:00 AM"
    assert format_time_label(9 * 60) == "9:00 AM"
    assert format_time_label(13 * 60 + 5) == "1:05 PM"
    assert parse_time_of_day(format_time_label(22 * 60 + 45)) == 22 * 60 + 45


def test_end_time_is_start_plus_slot_duration():
    assert add_minutes_to_label("11:00 AM", 30) == "11:30 AM"
    assert add_minutes_to_label("11:45 AM", 30) == "12:15 PM"
    assert add_minutes_to_label("not a time", 30) is None


def test_slots_for_monday_nine_to_eleven():
    assert MONDAY.weekday() == 0
    index = _index({"day": "Monday", "isAvailable": True, "startTime": "09:00", "endTime": "11:00"})

    assert slots_for_date(MONDAY, index) == ["9:00 AM", "10:00 AM"]


def test_slot_count_follows_step_and_duration():
    index = _index({"day": "Monday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"})

    # floor((480 - 30) / 60) + 1
    assert len(slots_for_date(MONDAY, index)) == 8
    assert slots_for_date(MONDAY, index)[-1] == "4:00 PM"
    assert len(slots_for_date(MONDAY, index, step_minutes=30, duration_minutes=30)) == 16


def test_slots_use_24_hour_working_hours():
    index = _index({"day": "monday", "isAvailable": True, "startTime": "14:00", "endTime": "17:30"})

    assert slots_for_date(MONDAY, index) == ["2:00 PM", "3:00 PM", "4:00 PM", "5:00 PM"]


def test_slots_empty_for_closed_missing_or_malformed_days():
    closed = _index({"day": "Monday", "isAvailable": False, "startTime": "9:00 AM", "endTime": "5:00 PM"})
    malformed = _index({"day": "Monday", "isAvailable": True, "startTime": "nine", "endTime": "5:00 PM"})
    inverted = _index({"day": "Monday", "isAvailable": True, "startTime": "5:00 PM", "endTime": "9:00 AM"})
    too_short = _index({"day": "Monday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "9:20 AM"})

    assert slots_for_date(MONDAY, _index()) == []
    assert slots_for_date(MONDAY, closed) == []
    assert slots_for_date(MONDAY, malformed) == []
    assert slots_for_date(MONDAY, inverted) == []
    assert slots_for_date(MONDAY, too_short) == []


def test_working_hours_index_last_entry_wins_and_is_case_insensitive():
    index = WorkingHoursIndex.build(
        [
            WorkingHoursEntry(weekday="Monday", is_available=False),
            WorkingHoursEntry(weekday="MONDAY", is_available=True, start_time="9:00 AM", end_time="10:00 AM"),
        ]
    )

    assert len(index) == 1
    assert index.lookup("mon").is_available
    assert index.is_open(MONDAY)
    assert not index.is_open(date(2025, 6, 3))


def test_past_slots_are_dropped_only_for_today():
    slots = ["9:00 AM", "10:00 AM", "11:00 AM"]
    now = datetime(2025, 6, 2, 10, 0)

    assert filter_past_for_today(MONDAY, slots, now) == ["11:00 AM"]
    assert filter_past_for_today(date(2025, 6, 9), slots, now) == slots
    assert is_past_for_today(MONDAY, "garbage", now)
    assert not is_past_for_today(date(2025, 6, 9), "9:00 AM", now)


def test_next_available_date_skips_closed_days():
    index = _index(
        {"day": "Monday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
        {"day": "Thursday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
    )

    assert next_available_date(MONDAY, index) == date(2025, 6, 5)
    assert next_available_date(date(2025, 6, 5), index) == date(2025, 6, 9)


def test_next_available_date_requires_slots_by_default():
    index = _index(
        {"day": "Tuesday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "9:10 AM"},
        {"day": "Wednesday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
    )

    assert next_available_date(MONDAY, index) == date(2025, 6, 4)
    assert next_available_date(MONDAY, index, require_slots=False) == date(2025, 6, 3)


def test_next_available_date_none_within_horizon():
    index = _index({"day": "Sunday", "isAvailable": False})

    assert next_available_date(MONDAY, index) is None
    weekly = _index({"day": "Monday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"})
    assert next_available_date(MONDAY, weekly, horizon_days=6) is None


def test_iso_dates_are_parsed_from_components():
    assert parse_iso_date("2025-06-02") == MONDAY
    assert parse_iso_date("2023-02-30") is None
    assert parse_iso_date("2025-6-2") is None
    assert parse_iso_date("2025-06-02T00:00:00Z") is None


def test_month_grid_starts_on_monday():
    cells = month_grid(2025, 6)

    assert len(cells) == 35
    assert cells[0] == date(2025, 5, 26)
    assert all(cells[i].weekday() == i % 7 for i in range(35))
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2025, 12, 1) == (2026, 1)
