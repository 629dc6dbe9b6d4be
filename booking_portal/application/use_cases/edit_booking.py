from __future__ import annotations

from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime

from booking_portal.application.utils.calendar_dates import month_grid, parse_iso_date, shift_month, to_iso
from booking_portal.application.utils.slots import (
    is_past_for_today,
    next_available_date,
    slots_for_date,
)
from booking_portal.domain.entities.booking_draft import BookingDraft
from booking_portal.domain.entities.provider import Provider
from booking_portal.domain.entities.service import NamedService, Service, service_name


@dataclass(frozen=True)
class CalendarCell:
    date: str
    day: int
    in_month: bool
    is_today: bool
    is_past: bool
    is_available: bool
    is_selected: bool

    @property
    def selectable(self) -> bool:
        return (not self.is_past or self.is_today) and self.is_available


@dataclass(frozen=True)
class SlotOption:
    time: str
    disabled: bool = False
    selected: bool = False


@dataclass(frozen=True)
class EditBookingCommit:
    service: Service
    date: str
    time: str


class EditBookingModal:
    """Change service, date and time of the draft before the booking is submitted."""

    def __init__(
        self,
        provider: Provider,
        draft: BookingDraft,
        today: date,
        step_minutes: int = 60,
        duration_minutes: int = 30,
        horizon_days: int = 30,
    ) -> None:
        self._provider = provider
        self._index = provider.working_hours_index()
        self._today = today
        self._step_minutes = step_minutes
        self._duration_minutes = duration_minutes
        self._horizon_days = horizon_days

        self.selected_service = self._initial_service_name(draft)
        self.selected_date = parse_iso_date(draft.date) or today
        self.selected_time = draft.time or ""
        self.calendar_year = self.selected_date.year
        self.calendar_month = self.selected_date.month

    def _initial_service_name(self, draft: BookingDraft) -> str:
        names = self._provider.service_names()
        current = service_name(draft.service)
        if current and any(n.strip().lower() == current.strip().lower() for n in names):
            return current
        if names:
            return names[0]
        return current

    @property
    def service_names(self) -> list[str]:
        return self._provider.service_names()

    def shift_months(self, delta: int) -> None:
        year, month = shift_month(self.calendar_year, self.calendar_month, delta)
        # The month grid spills into the following month
        if not MINYEAR <= year < MAXYEAR:
            raise ValueError("Month is out of range")
        self.calendar_year, self.calendar_month = year, month

    def calendar(self) -> list[CalendarCell]:
        cells = []
        for day in month_grid(self.calendar_year, self.calendar_month):
            cells.append(
                CalendarCell(
                    date=to_iso(day),
                    day=day.day,
                    in_month=day.month == self.calendar_month,
                    is_today=day == self._today,
                    is_past=day < self._today,
                    is_available=self._index.is_open(day),
                    is_selected=day == self.selected_date,
                )
            )
        return cells

    def _can_select(self, day: date) -> bool:
        return day >= self._today and self._index.is_open(day)

    def select_date(self, iso_date: str) -> bool:
        day = parse_iso_date(iso_date)
        if day is None or not self._can_select(day):
            return False
        self.selected_date = day
        self.selected_time = ""
        return True

    def select_service(self, name: str) -> bool:
        if self._provider.find_service(name) is None:
            return False
        self.selected_service = name
        self.selected_time = ""
        return True

    def _slots(self, day: date) -> list[str]:
        return slots_for_date(day, self._index, self._step_minutes, self._duration_minutes)

    def slots(self, now: datetime) -> list[SlotOption]:
        return [
            SlotOption(
                time=label,
                disabled=is_past_for_today(self.selected_date, label, now),
                selected=label == self.selected_time,
            )
            for label in self._slots(self.selected_date)
        ]

    def select_time(self, label: str, now: datetime) -> bool:
        for option in self.slots(now):
            if option.time == label and not option.disabled:
                self.selected_time = label
                return True
        return False

    def next_available(self) -> date | None:
        return next_available_date(
            self.selected_date,
            self._index,
            self._horizon_days,
            step_minutes=self._step_minutes,
            duration_minutes=self._duration_minutes,
        )

    def next_available_slots(self) -> list[str]:
        day = self.next_available()
        return self._slots(day) if day else []

    def pick_next_available(self, label: str) -> bool:
        day = self.next_available()
        if day is None or label not in self._slots(day):
            return False
        self.selected_date = day
        self.selected_time = label
        return True

    def commit(self) -> EditBookingCommit:
        if not self.selected_date or not self.selected_time:
            raise ValueError("Please select a date and time")
        service = self._provider.find_service(self.selected_service) or NamedService(self.selected_service)
        return EditBookingCommit(service=service, date=to_iso(self.selected_date), time=self.selected_time)
