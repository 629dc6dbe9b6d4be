from __future__ import annotations

import logging

from booking_portal.domain.entities.booking_step import BookingStep


class StepStateMachine:
    """
    Cursor over the booking flow:
    appointment -> patient-details -> (login ->) patient-details -> payment.
    """

    def __init__(self, initial: BookingStep = BookingStep.appointment) -> None:
        self._current = initial
        self._logger = logging.getLogger(__name__)

    @property
    def current(self) -> BookingStep:
        return self._current

    def _move(self, target: BookingStep, reason: str) -> BookingStep:
        if target != self._current:
            self._logger.info(
                "Booking step changed",
                extra={"step": f"{self._current.value}->{target.value}", "reason": reason},
            )
        self._current = target
        return self._current

    def continue_from_appointment(self) -> BookingStep:
        if self._current == BookingStep.appointment:
            return self._move(BookingStep.patient_details, "continue")
        return self._current

    def continue_from_patient_details(self, authenticated: bool, booking_succeeded: bool = False) -> BookingStep:
        """Unauthenticated users go to login; authenticated users reach payment only after a booking."""
        if self._current != BookingStep.patient_details:
            return self._current
        if not authenticated:
            return self._move(BookingStep.login, "login_required")
        if booking_succeeded:
            return self._move(BookingStep.payment, "booked")
        return self._current

    def on_authenticated(self) -> BookingStep:
        if self._current == BookingStep.login:
            return self._move(BookingStep.patient_details, "authenticated")
        return self._current

    def continue_as_guest(self) -> BookingStep:
        if self._current == BookingStep.login:
            return self._move(BookingStep.patient_details, "guest")
        return self._current

    def back(self, authenticated: bool) -> BookingStep | None:
        """Step to show after Back, or None to leave the flow for the entry page."""
        if self._current == BookingStep.patient_details:
            return self._move(BookingStep.appointment, "back")
        if self._current == BookingStep.login:
            return self._move(BookingStep.patient_details, "back")
        if self._current == BookingStep.payment:
            target = BookingStep.patient_details if authenticated else BookingStep.login
            return self._move(target, "back")
        return None

    def reset(self) -> None:
        self._current = BookingStep.appointment
