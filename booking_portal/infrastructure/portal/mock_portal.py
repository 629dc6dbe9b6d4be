from __future__ import annotations

import logging
import threading
from decimal import Decimal

from booking_portal.application.exceptions import AuthenticationError, DuplicateSlotError
from booking_portal.application.ports.appointments import (
    AppointmentPort,
    AppointmentRequest,
    AppointmentResponse,
)
from booking_portal.application.ports.oauth import OAuthPort
from booking_portal.application.ports.payments import PaymentPort
from booking_portal.application.ports.profile import ProfilePort
from booking_portal.application.ports.provider_catalog import ProviderCatalogPort
from booking_portal.domain.entities.appointment import Appointment
from booking_portal.domain.entities.patient_profile import PatientProfile
from booking_portal.domain.entities.provider import Provider

SAMPLE_PROVIDER_PAYLOAD = {
    "id": "prov-1",
    "name": "Lagoon Family Clinic",
    "address": "12 Marina Road, Lagos",
    "image": None,
    "services": [
        {"id": "svc-consult", "name": "General Consultation", "price": 10000, "category": "Consultation"},
        {"id": "svc-dental", "name": "Dental Check-up", "price": 15000, "category": "Dental"},
    ],
    "working_hours": [
        {"day": "Monday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
        {"day": "Tuesday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
        {"day": "Wednesday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "1:00 PM"},
        {"day": "Thursday", "isAvailable": True, "startTime": "9:00 AM", "endTime": "5:00 PM"},
        {"day": "Friday", "isAvailable": True, "startTime": "10:00 AM", "endTime": "4:00 PM"},
        {"day": "Saturday", "isAvailable": False},
        {"day": "Sunday", "isAvailable": False},
    ],
}


class MockProviderCatalog(ProviderCatalogPort):
    def __init__(self, providers: list[Provider] | None = None) -> None:
        if providers is None:
            providers = [Provider.from_payload(SAMPLE_PROVIDER_PAYLOAD)]
        self._providers = {p.id: p for p in providers}

    def get_provider(self, provider_id: str) -> Provider | None:
        return self._providers.get(provider_id)


class MockProfileDirectory(ProfilePort):
    def __init__(self, profiles: dict[str, PatientProfile] | None = None) -> None:
        self._profiles = dict(profiles or {})

    def add(self, auth_token: str, profile: PatientProfile) -> None:
        self._profiles[auth_token] = profile

    def get_current_patient_profile(self, auth_token: str | None) -> PatientProfile | None:
        if not auth_token:
            return None
        return self._profiles.get(auth_token)


class MockAppointments(AppointmentPort):
    """In-memory appointment book; a (provider, date, start) triple can be booked once."""

    def __init__(self) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._taken: set[tuple[str, str, str]] = set()
        self._lock = threading.Lock()
        self.requests: list[AppointmentRequest] = []
        self.invalidations = 0
        self._logger = logging.getLogger(__name__)

    def create_appointment(self, request: AppointmentRequest, auth_token: str | None) -> AppointmentResponse:
        slot = (request.provider_id, request.date, request.start_time)
        with self._lock:
            self.requests.append(request)
            if slot in self._taken:
                raise DuplicateSlotError("E11000 duplicate key error collection: appointments", 409)
            self._taken.add(slot)
            appointment_id = f"mock_appt_{len(self._appointments) + 1}"
            appointment = Appointment.from_payload(
                {
                    "id": appointment_id,
                    "date": request.date,
                    "start_time": request.start_time,
                    "end_time": request.end_time,
                    "status": "pending",
                }
            )
            self._appointments[appointment_id] = appointment

        self._logger.info(
            "Mock appointment created",
            extra={"appointment_id": appointment_id, "provider_id": request.provider_id},
        )
        return AppointmentResponse(success=True, message="Appointment booked", appointment=appointment)

    def list_appointments(self, auth_token: str | None) -> list[Appointment]:
        with self._lock:
            return list(self._appointments.values())

    def invalidate_cached_appointments(self, auth_token: str | None) -> None:
        self.invalidations += 1


class MockPayments(PaymentPort):
    def __init__(self, checkout_base_url: str = "https://checkout.example.test/pay") -> None:
        self._checkout_base_url = checkout_base_url
        self.calls: list[tuple[str, Decimal, str]] = []

    def initialize_payment(
        self,
        appointment_id: str,
        amount: Decimal,
        email: str,
        auth_token: str | None,
    ) -> str | None:
        self.calls.append((appointment_id, amount, email))
        return f"{self._checkout_base_url}/{appointment_id}"


class MockOAuth(OAuthPort):
    """Accepts any identity token except "invalid"."""

    def oauth_login(self, id_token: str) -> str:
        if not id_token or id_token == "invalid":
            raise AuthenticationError("Sign-in was rejected", 401)
        return f"mock-token-{id_token}"
