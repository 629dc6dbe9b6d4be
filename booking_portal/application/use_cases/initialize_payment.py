from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from booking_portal.application.exceptions import CollaboratorError
from booking_portal.application.ports.payments import PaymentPort
from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.application.utils.pricing import CouponRule
from booking_portal.application.utils.submission_guard import SubmissionGuard

PAYMENT_FAILED_MESSAGE = "Failed to initialize payment. Please try again."


@dataclass(frozen=True)
class PaymentResult:
    action: str  # "redirect", "missing_details", "duplicate_request", "booking_in_flight", "failed"
    message: str | None
    authorization_url: str | None = None
    amount: Decimal | None = None
    errors: dict[str, str] = field(default_factory=dict)


class InitializePaymentUseCase:
    def __init__(
        self,
        payments: PaymentPort,
        draft_store: BookingDraftStore,
        guard: SubmissionGuard,
        booking_guard: SubmissionGuard,
        coupon_rule: CouponRule,
    ) -> None:
        self._payments = payments
        self._draft_store = draft_store
        self._guard = guard
        self._booking_guard = booking_guard
        self._coupon_rule = coupon_rule
        self._logger = logging.getLogger(__name__)

    def execute(self, email: str, coupon_applied: bool, auth_token: str | None) -> PaymentResult:
        if self._booking_guard.in_flight:
            return PaymentResult(action="booking_in_flight", message="Please wait for your booking to complete.")
        if not self._guard.try_acquire():
            self._logger.info("Payment initialization dropped", extra={"reason": "in_flight"})
            return PaymentResult(action="duplicate_request", message=None)

        try:
            draft = self._draft_store.load()
            amount = self._coupon_rule.amount_due(draft.service, coupon_applied)
            email = (email or "").strip()

            errors: dict[str, str] = {}
            if not draft.appointment_id:
                errors["appointment"] = "Please complete your booking before paying."
            if amount <= 0:
                errors["amount"] = "Unable to determine the amount to pay for this service."
            if not email:
                errors["email"] = "Email address is missing"
            if errors:
                first_message = next(iter(errors.values()))
                return PaymentResult(action="missing_details", message=first_message, amount=amount, errors=errors)

            try:
                url = self._payments.initialize_payment(draft.appointment_id, amount, email, auth_token)
            except CollaboratorError as e:
                self._logger.error(
                    "Error initializing payment",
                    extra={"appointment_id": draft.appointment_id, "error": str(e)},
                )
                return PaymentResult(action="failed", message=e.message or PAYMENT_FAILED_MESSAGE, amount=amount)

            if not url:
                return PaymentResult(action="failed", message=PAYMENT_FAILED_MESSAGE, amount=amount)

            self._logger.info("Payment initialized", extra={"appointment_id": draft.appointment_id})
            return PaymentResult(action="redirect", message=None, authorization_url=url, amount=amount)
        finally:
            self._guard.release()
