from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AppointmentFor(str, Enum):
    self_ = "Self"
    other = "Other"


@dataclass(frozen=True)
class ContactDetails:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    gender: str = ""
    date_of_birth: str = ""  # YYYY-MM-DD


@dataclass(frozen=True)
class BookingFormState:
    """In-memory form state; never persisted, rebuilt on mount."""

    appointment_for: AppointmentFor = AppointmentFor.self_
    visited_before: bool = True
    identification_number: str = ""
    comments: str = ""
    communication_preference: str = "Both"  # "Booker" | "Patient" | "Both"
    booker: ContactDetails = ContactDetails()
    patient: ContactDetails = ContactDetails()  # used when appointment_for is Other
    coupon_code: str = ""
    coupon_applied: bool = False

    @property
    def attendee(self) -> ContactDetails:
        """Contact record of the person attending the appointment."""
        if self.appointment_for == AppointmentFor.other:
            return self.patient
        return self.booker
