from __future__ import annotations

import logging
import re
import threading

from booking_portal.application.exceptions import DuplicateSlotError
from booking_portal.application.ports.appointments import (
    AppointmentPort,
    AppointmentRequest,
    AppointmentResponse,
)
from booking_portal.domain.entities.appointment import Appointment
from booking_portal.infrastructure.portal.api_client import PortalApiClient, PortalApiError

MONGO_DUPLICATE_KEY_CODE = 11000
_DUPLICATE_KEY = re.compile(r"duplicate key", re.IGNORECASE)


def is_duplicate_slot_error(error: PortalApiError) -> bool:
    """A taken slot surfaces as HTTP 409, a Mongo 11000 code, or a "duplicate key" message."""
    if error.status_code == 409:
        return True
    if str(error.error_code) == str(MONGO_DUPLICATE_KEY_CODE):
        return True
    return bool(error.message and _DUPLICATE_KEY.search(error.message))


class PortalAppointments(AppointmentPort):
    def __init__(self, client: PortalApiClient) -> None:
        self._client = client
        # auth token -> cached appointment list
        self._cache: dict[str, list[Appointment]] = {}
        self._cache_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def create_appointment(self, request: AppointmentRequest, auth_token: str | None) -> AppointmentResponse:
        try:
            body = self._client.request("POST", "/api/v1/appointments/book", auth_token=auth_token, json=request.to_payload())
        except PortalApiError as e:
            if is_duplicate_slot_error(e):
                raise DuplicateSlotError(e.message, e.status_code) from e
            raise

        data = body.get("data") or {}
        appointment = Appointment.from_payload(data.get("appointment") if isinstance(data, dict) else None)
        return AppointmentResponse(
            success=bool(body.get("success")),
            message=body.get("message"),
            appointment=appointment,
        )

    def list_appointments(self, auth_token: str | None) -> list[Appointment]:
        cache_key = auth_token or ""
        with self._cache_lock:
            if cache_key in self._cache:
                return list(self._cache[cache_key])

        body = self._client.request("GET", "/api/v1/appointments/me", auth_token=auth_token)
        data = body.get("data") or []
        if isinstance(data, dict):
            data = data.get("appointments") or []
        appointments = [a for a in (Appointment.from_payload(item) for item in data) if a]

        with self._cache_lock:
            self._cache[cache_key] = appointments
        return list(appointments)

    def invalidate_cached_appointments(self, auth_token: str | None) -> None:
        with self._cache_lock:
            self._cache.pop(auth_token or "", None)
