from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from booking_portal.domain.entities.appointment import Appointment


@dataclass(frozen=True)
class AppointmentRequest:
    provider_id: str
    service_id: str
    date: str  # YYYY-MM-DD
    start_time: str  # "11:00 AM"
    end_time: str  # "11:30 AM"
    form_data: dict[str, Any] = field(default_factory=dict)
    notes: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "providerId": self.provider_id,
            "serviceId": self.service_id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "formData": dict(self.form_data),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AppointmentResponse:
    success: bool
    message: str | None = None
    appointment: Appointment | None = None


class AppointmentPort(ABC):
    @abstractmethod
    def create_appointment(self, request: AppointmentRequest, auth_token: str | None) -> AppointmentResponse:
        """
        Create a pending (pre-payment) appointment.

        Raises DuplicateSlotError when the slot is already taken and
        CollaboratorError for any other failure.
        """
        raise NotImplementedError

    @abstractmethod
    def list_appointments(self, auth_token: str | None) -> list[Appointment]:
        """The patient's appointments; may be served from a cache."""
        raise NotImplementedError

    @abstractmethod
    def invalidate_cached_appointments(self, auth_token: str | None) -> None:
        """Drop any cached appointment list so the next read refetches."""
        raise NotImplementedError
