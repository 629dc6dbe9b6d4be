from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from booking_portal.application.exceptions import CollaboratorError, DuplicateSlotError
from booking_portal.application.ports.appointments import AppointmentPort, AppointmentRequest
from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.application.utils.submission_guard import SubmissionGuard
from booking_portal.application.utils.time_of_day import add_minutes_to_label
from booking_portal.domain.entities.appointment import Appointment
from booking_portal.domain.entities.booking_draft import BookingDraft
from booking_portal.domain.entities.booking_form import AppointmentFor, BookingFormState
from booking_portal.domain.entities.service import service_id

SLOT_TAKEN_MESSAGE = "This time slot is already booked. Please choose another time."
ALREADY_BOOKED_MESSAGE = "A booking is already in progress. Please complete the payment first."
NOT_CONFIRMED_MESSAGE = "Unable to book this slot. Please choose another time."
GENERIC_FAILURE_MESSAGE = "Failed to book appointment. Please try another time."
MISSING_SELECTION_MESSAGE = "Please select a service, date and time to proceed."


@dataclass(frozen=True)
class BookingSubmissionResult:
    action: str  # "booked", "duplicate_request", "already_booked", "invalid", "conflict", "failed"
    message: str | None
    appointment: Appointment | None = None


def build_form_data(form: BookingFormState) -> dict[str, Any]:
    attendee = form.attendee
    is_self = form.appointment_for == AppointmentFor.self_
    return {
        "forWhom": form.appointment_for.value,
        "visitedBefore": form.visited_before,
        "identificationNumber": form.identification_number,
        "comments": form.comments,
        "communicationPreference": "Booker" if is_self else form.communication_preference,
        "patientName": attendee.full_name,
        "patientEmail": attendee.email,
        "patientPhone": attendee.phone,
        "patientAddress": attendee.address,
        "patientGender": attendee.gender,
        "patientDOB": attendee.date_of_birth,
    }


class CreateAppointmentUseCase:
    def __init__(
        self,
        appointments: AppointmentPort,
        draft_store: BookingDraftStore,
        guard: SubmissionGuard,
        slot_duration_minutes: int = 30,
    ) -> None:
        self._appointments = appointments
        self._draft_store = draft_store
        self._guard = guard
        self._slot_duration_minutes = slot_duration_minutes
        self._logger = logging.getLogger(__name__)

    def build_request(self, provider_id: str, draft: BookingDraft, form: BookingFormState) -> AppointmentRequest | None:
        selected_service_id = service_id(draft.service)
        if not provider_id or not selected_service_id or not draft.date or not draft.time:
            return None
        end_time = add_minutes_to_label(draft.time, self._slot_duration_minutes)
        if end_time is None:
            return None
        return AppointmentRequest(
            provider_id=provider_id,
            service_id=selected_service_id,
            date=draft.date,
            start_time=draft.time,
            end_time=end_time,
            form_data=build_form_data(form),
            notes=form.comments or "",
        )

    def execute(self, provider_id: str, form: BookingFormState, auth_token: str | None) -> BookingSubmissionResult:
        if not self._guard.try_acquire():
            self._logger.info("Booking submission dropped", extra={"reason": "in_flight"})
            return BookingSubmissionResult(action="duplicate_request", message=None)

        try:
            draft = self._draft_store.load()
            if draft.appointment_id:
                self._logger.info(
                    "Booking submission rejected",
                    extra={"reason": "already_booked", "appointment_id": draft.appointment_id},
                )
                return BookingSubmissionResult(action="already_booked", message=ALREADY_BOOKED_MESSAGE)

            request = self.build_request(provider_id, draft, form)
            if request is None:
                return BookingSubmissionResult(action="invalid", message=MISSING_SELECTION_MESSAGE)

            try:
                response = self._appointments.create_appointment(request, auth_token)
            except DuplicateSlotError as e:
                self._logger.warning("Slot already booked", extra={"provider_id": provider_id, "error": str(e)})
                return BookingSubmissionResult(action="conflict", message=SLOT_TAKEN_MESSAGE)
            except CollaboratorError as e:
                self._logger.error("Error creating appointment", extra={"provider_id": provider_id, "error": str(e)})
                return BookingSubmissionResult(action="failed", message=e.message or GENERIC_FAILURE_MESSAGE)

            if not response.success:
                return BookingSubmissionResult(action="failed", message=response.message or NOT_CONFIRMED_MESSAGE)
            if response.appointment is None:
                self._logger.error("Appointment response missing id", extra={"provider_id": provider_id})
                return BookingSubmissionResult(action="failed", message=NOT_CONFIRMED_MESSAGE)

            self._draft_store.update(BookingDraft(appointment=response.appointment))
            self._appointments.invalidate_cached_appointments(auth_token)

            self._logger.info(
                "Appointment created",
                extra={"provider_id": provider_id, "appointment_id": response.appointment.id},
            )
            return BookingSubmissionResult(
                action="booked",
                message=response.message,
                appointment=response.appointment,
            )
        finally:
            self._guard.release()
