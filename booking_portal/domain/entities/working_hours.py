from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

# Index matches date.weekday(): Monday == 0
WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_WEEKDAY_ALIASES = {name[:3]: name for name in WEEKDAY_NAMES}


def normalize_weekday(value: str | None) -> str | None:
    """Normalize "Mon", "MONDAY", " monday " to "monday". Returns None for unknown names."""
    if not value:
        return None
    normalized = str(value).strip().lower()
    if normalized in WEEKDAY_NAMES:
        return normalized
    return _WEEKDAY_ALIASES.get(normalized[:3]) if len(normalized) == 3 else None


@dataclass(frozen=True)
class WorkingHoursEntry:
    weekday: str
    is_available: bool = False
    start_time: str | None = None  # wall-clock, "9:00 AM" or "09:00"
    end_time: str | None = None

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "WorkingHoursEntry | None":
        weekday = normalize_weekday(payload.get("day") or payload.get("weekday"))
        if not weekday:
            return None
        is_available = payload.get("isAvailable", payload.get("is_available", False))
        return WorkingHoursEntry(
            weekday=weekday,
            is_available=bool(is_available),
            start_time=payload.get("startTime") or payload.get("start_time"),
            end_time=payload.get("endTime") or payload.get("end_time"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "day": self.weekday,
            "isAvailable": self.is_available,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


class WorkingHoursIndex:
    """Lookup of a provider's availability keyed by lowercase weekday name."""

    def __init__(self, entries: dict[str, WorkingHoursEntry] | None = None) -> None:
        self._entries = dict(entries or {})

    @classmethod
    def build(cls, entries: Iterable[WorkingHoursEntry]) -> "WorkingHoursIndex":
        by_day: dict[str, WorkingHoursEntry] = {}
        for entry in entries:
            weekday = normalize_weekday(entry.weekday)
            if weekday:
                # Later records for the same weekday replace earlier ones
                by_day[weekday] = entry
        return cls(by_day)

    @classmethod
    def from_payload(cls, payload: Iterable[dict[str, Any]] | None) -> "WorkingHoursIndex":
        entries = []
        for raw in payload or []:
            if isinstance(raw, dict):
                entry = WorkingHoursEntry.from_payload(raw)
                if entry:
                    entries.append(entry)
        return cls.build(entries)

    def lookup(self, weekday_name: str) -> WorkingHoursEntry | None:
        weekday = normalize_weekday(weekday_name)
        if not weekday:
            return None
        return self._entries.get(weekday)

    def for_date(self, day: date) -> WorkingHoursEntry | None:
        return self._entries.get(WEEKDAY_NAMES[day.weekday()])

    def is_open(self, day: date) -> bool:
        entry = self.for_date(day)
        return bool(entry and entry.is_available)

    def __len__(self) -> int:
        return len(self._entries)
