from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable
from zoneinfo import ZoneInfo

from booking_portal.application.dto.navigation_state import NavigationStateDTO
from booking_portal.application.exceptions import AuthenticationError, CollaboratorError
from booking_portal.application.ports.appointments import AppointmentPort
from booking_portal.application.ports.oauth import OAuthPort
from booking_portal.application.ports.payments import PaymentPort
from booking_portal.application.ports.profile import ProfilePort
from booking_portal.application.ports.provider_catalog import ProviderCatalogPort
from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.application.use_cases.booking_steps import StepStateMachine
from booking_portal.application.use_cases.create_appointment import CreateAppointmentUseCase
from booking_portal.application.use_cases.edit_booking import EditBookingModal
from booking_portal.application.use_cases.initialize_payment import InitializePaymentUseCase, PaymentResult
from booking_portal.application.utils.calendar_dates import parse_iso_date, to_iso
from booking_portal.application.utils.patient_validators import validate_booking
from booking_portal.application.utils.pricing import CouponResult, CouponRule
from booking_portal.application.utils.slots import filter_past_for_today, next_available_date, slots_for_date
from booking_portal.application.utils.submission_guard import SubmissionGuard
from booking_portal.application.utils.time_of_day import format_time_label, parse_time_of_day
from booking_portal.domain.entities.booking_draft import BookingDraft, reconcile_on_mount
from booking_portal.domain.entities.booking_form import AppointmentFor, BookingFormState, ContactDetails
from booking_portal.domain.entities.booking_step import BookingStep
from booking_portal.domain.entities.patient_profile import PatientProfile
from booking_portal.domain.entities.provider import Provider
from booking_portal.domain.entities.service import (
    NamedService,
    Service,
    is_blank_service,
    service_name,
    service_price,
)
from booking_portal.domain.entities.validation import ValidationErrors

_FORM_FIELDS = (
    "appointment_for",
    "visited_before",
    "identification_number",
    "comments",
    "communication_preference",
)
_CONTACT_FIELDS = ("full_name", "email", "phone", "address", "gender", "date_of_birth")


@dataclass(frozen=True)
class MountResult:
    action: str  # "mounted", "not_found", "failed", "discarded"
    message: str | None = None


@dataclass(frozen=True)
class StepResult:
    action: str  # "advanced", "invalid", "login_required", "booked", "conflict", "failed", ...
    step: BookingStep
    message: str | None = None
    errors: dict[str, str] = field(default_factory=dict)
    exit_to: str | None = None


@dataclass(frozen=True)
class SlotListing:
    date: str
    slots: list[str]
    next_available_date: str | None
    next_available_slots: list[str]


class BookingSession:
    """
    Orchestrates one browser session's booking flow.

    Owns the step cursor, the ephemeral form state and the two submission
    guards; the persisted draft lives in `BookingDraftStore` and every
    provider/service/date/time change is written through immediately.
    """

    def __init__(
        self,
        session_id: str,
        provider_catalog: ProviderCatalogPort,
        profiles: ProfilePort,
        appointments: AppointmentPort,
        payments: PaymentPort,
        oauth: OAuthPort,
        draft_store: BookingDraftStore,
        timezone: ZoneInfo,
        coupon_rule: CouponRule | None = None,
        slot_step_minutes: int = 60,
        slot_duration_minutes: int = 30,
        horizon_days: int = 30,
        min_patient_age_years: int = 2,
        phone_country_code: str = "234",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.session_id = session_id
        self._catalog = provider_catalog
        self._profiles = profiles
        self._appointments = appointments
        self._payments = payments
        self._oauth = oauth
        self._draft_store = draft_store
        self._timezone = timezone
        self._coupon_rule = coupon_rule or CouponRule()
        self._slot_step_minutes = slot_step_minutes
        self._slot_duration_minutes = slot_duration_minutes
        self._horizon_days = horizon_days
        self._min_patient_age_years = min_patient_age_years
        self._phone_country_code = phone_country_code
        self._now = now or (lambda: datetime.now(self._timezone))
        self._logger = logging.getLogger(__name__)

        self._booking_guard = SubmissionGuard("booking")
        self._payment_guard = SubmissionGuard("payment")
        self._create_appointment = CreateAppointmentUseCase(
            appointments=appointments,
            draft_store=draft_store,
            guard=self._booking_guard,
            slot_duration_minutes=slot_duration_minutes,
        )
        self._initialize_payment = InitializePaymentUseCase(
            payments=payments,
            draft_store=draft_store,
            guard=self._payment_guard,
            booking_guard=self._booking_guard,
            coupon_rule=self._coupon_rule,
        )

        self._steps = StepStateMachine()
        self._form = BookingFormState()
        self._errors = ValidationErrors()
        self._provider: Provider | None = None
        self._profile: PatientProfile | None = None
        self._auth_token: str | None = None
        self._guest = False
        self._entry_path: str | None = None
        self._edit_modal: EditBookingModal | None = None
        self._mounted = False
        # Bumped on mount/close; responses settling under an older epoch are not applied
        self._epoch = 0

    # -- state accessors ---------------------------------------------------

    @property
    def step(self) -> BookingStep:
        return self._steps.current

    @property
    def form(self) -> BookingFormState:
        return self._form

    @property
    def errors(self) -> ValidationErrors:
        return self._errors

    @property
    def provider(self) -> Provider | None:
        return self._provider

    @property
    def profile(self) -> PatientProfile | None:
        return self._profile

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def is_authenticated(self) -> bool:
        return bool((self._profile and self._profile.id) or self._auth_token or self._guest)

    @property
    def booking_in_flight(self) -> bool:
        return self._booking_guard.in_flight

    @property
    def payment_in_flight(self) -> bool:
        return self._payment_guard.in_flight

    @property
    def draft(self) -> BookingDraft:
        return self._draft_store.load()

    def now(self) -> datetime:
        return self._now()

    def today(self) -> date:
        return self._now().date()

    def _is_current(self, epoch: int) -> bool:
        return self._mounted and epoch == self._epoch

    # -- lifecycle -----------------------------------------------------------

    def mount(
        self,
        provider_id: str,
        navigation: NavigationStateDTO | None = None,
        auth_token: str | None = None,
        entry_path: str | None = None,
    ) -> MountResult:
        self._epoch += 1
        epoch = self._epoch
        self._mounted = True
        self._steps.reset()
        self._form = BookingFormState()
        self._errors.clear()
        self._edit_modal = None
        self._entry_path = entry_path
        self._auth_token = auth_token or None
        self._guest = False

        self._profile = self._load_profile()
        if not self._is_current(epoch):
            return MountResult(action="discarded")

        try:
            provider = self._catalog.get_provider(provider_id)
        except CollaboratorError as e:
            self._logger.error("Error loading provider", extra={"provider_id": provider_id, "error": str(e)})
            return MountResult(action="failed", message=e.message or "Unable to load provider. Please try again.")
        if not self._is_current(epoch):
            return MountResult(action="discarded")
        if provider is None:
            return MountResult(action="not_found", message="Provider not found")
        self._provider = provider

        nav_draft = navigation.to_draft() if navigation else BookingDraft()
        draft = reconcile_on_mount(self._draft_store.load(), nav_draft, provider.id)
        draft = replace(
            draft,
            provider=draft.provider or provider.snapshot(),
            service=self._resolve_service(draft.service),
        )
        if is_blank_service(draft.service) and len(provider.services) == 1:
            draft = replace(draft, service=provider.services[0])
        self._draft_store.save(draft)

        self._prefill_from_profile()
        self._logger.info(
            "Booking session mounted",
            extra={
                "session_id": self.session_id,
                "provider_id": provider.id,
                "appointment_id": draft.appointment_id,
            },
        )
        return MountResult(action="mounted")

    def close(self) -> None:
        """Unmount: in-flight responses that settle afterwards leave the in-memory state alone."""
        self._mounted = False
        self._epoch += 1
        self._edit_modal = None
        self._logger.info("Booking session closed", extra={"session_id": self.session_id})

    def _load_profile(self) -> PatientProfile | None:
        if not self._auth_token:
            return None
        try:
            return self._profiles.get_current_patient_profile(self._auth_token)
        except CollaboratorError as e:
            self._logger.warning("Profile unavailable", extra={"session_id": self.session_id, "error": str(e)})
            return None

    def _resolve_service(self, service: Service | None) -> Service | None:
        """Swap a bare service name for the catalog record when the provider has one."""
        if isinstance(service, NamedService) and self._provider:
            return self._provider.find_service(service.name) or service
        return service

    def _prefill_from_profile(self) -> None:
        profile = self._profile
        if not profile:
            return
        booker = self._form.booker
        if self._form.appointment_for == AppointmentFor.self_:
            booker = ContactDetails(
                full_name=profile.full_name,
                email=profile.preferred_email,
                phone=profile.phone,
                address=profile.address,
                gender=profile.gender,
                date_of_birth=profile.date_of_birth,
            )
        else:
            booker = replace(
                booker,
                full_name=profile.full_name,
                email=profile.preferred_email,
                phone=profile.phone,
            )
        self._form = replace(self._form, booker=booker)

    # -- selections (write-through to the draft) -----------------------------

    def _require_provider(self) -> Provider:
        if not self._mounted or self._provider is None:
            raise ValueError("Booking session is not mounted")
        return self._provider

    def select_service(self, key: str) -> BookingDraft:
        provider = self._require_provider()
        if not (key or "").strip():
            raise ValueError("Please select a service")
        service = provider.find_service(key)
        if service is None:
            raise ValueError("This provider does not offer that service")
        self._errors.clear_field("service")
        return self._draft_store.update(BookingDraft(service=service))

    def select_date(self, iso_date: str) -> BookingDraft:
        self._require_provider()
        day = parse_iso_date(iso_date)
        if day is None:
            raise ValueError("Date must be in YYYY-MM-DD format")
        if day < self.today():
            raise ValueError("Please select a date that is not in the past")
        self._errors.clear_field("date")
        iso = to_iso(day)
        current = self._draft_store.load()
        if current.date == iso:
            return current
        # A time chosen for another day is not a slot of this one
        return self._draft_store.overwrite(date=iso, time=None)

    def select_time(self, label: str) -> BookingDraft:
        self._require_provider()
        minutes = parse_time_of_day(label)
        if minutes is None:
            raise ValueError("Please select a valid time")
        normalized = format_time_label(minutes)
        draft = self._draft_store.load()
        day = parse_iso_date(draft.date)
        if day is None:
            raise ValueError("Please select a date first")
        if normalized not in self.slots_for(day):
            raise ValueError("This time is not available on the selected date")
        self._errors.clear_field("time")
        return self._draft_store.update(BookingDraft(time=normalized))

    def slots_for(self, day: date) -> list[str]:
        provider = self._require_provider()
        labels = slots_for_date(
            day,
            provider.working_hours_index(),
            self._slot_step_minutes,
            self._slot_duration_minutes,
        )
        return filter_past_for_today(day, labels, self._now())

    def slot_listing(self, iso_date: str) -> SlotListing:
        provider = self._require_provider()
        day = parse_iso_date(iso_date)
        if day is None:
            raise ValueError("Date must be in YYYY-MM-DD format")
        index = provider.working_hours_index()
        upcoming = next_available_date(
            day,
            index,
            self._horizon_days,
            step_minutes=self._slot_step_minutes,
            duration_minutes=self._slot_duration_minutes,
        )
        return SlotListing(
            date=to_iso(day),
            slots=self.slots_for(day),
            next_available_date=to_iso(upcoming) if upcoming else None,
            next_available_slots=self.slots_for(upcoming) if upcoming else [],
        )

    # -- form input ----------------------------------------------------------

    def update_form(self, changes: dict[str, Any]) -> BookingFormState:
        """Apply user edits; each edited field drops its validation error."""
        form = self._form
        previous_for = form.appointment_for

        for key in _FORM_FIELDS:
            if key not in changes or changes[key] is None:
                continue
            value = changes[key]
            if key == "appointment_for":
                value = AppointmentFor(value)
            form = replace(form, **{key: value})
            self._errors.clear_field(key)

        if not form.visited_before:
            form = replace(form, identification_number="")
            self._errors.clear_field("identification_number")

        for record, prefix in (("booker", ""), ("patient", "patient_")):
            contact_changes = changes.get(record) or {}
            if not contact_changes:
                continue
            updates = {k: v for k, v in contact_changes.items() if k in _CONTACT_FIELDS and v is not None}
            form = replace(form, **{record: replace(getattr(form, record), **updates)})
            for key in updates:
                self._errors.clear_field(f"{prefix}{key}")

        self._form = form
        if form.appointment_for != previous_for:
            self._prefill_from_profile()
        return self._form

    # -- step transitions ----------------------------------------------------

    def continue_(self) -> StepResult:
        if self.step == BookingStep.appointment:
            return StepResult(action="advanced", step=self._steps.continue_from_appointment())
        if self.step == BookingStep.patient_details:
            return self.submit_patient_details()
        return StepResult(action="noop", step=self.step)

    def submit_patient_details(self) -> StepResult:
        self._require_provider()
        self._errors.clear()
        draft = self._draft_store.load()
        errors = validate_booking(
            self._form,
            draft,
            self.today(),
            country_code=self._phone_country_code,
            min_age_years=self._min_patient_age_years,
        )
        if not any(key in errors for key in ("service", "date", "time")):
            slot_errors = self._check_selected_slot(draft)
            if slot_errors:
                errors = slot_errors
        if errors:
            self._errors = errors
            field_name, message = errors.first()
            self._logger.info(
                "Patient details rejected",
                extra={"session_id": self.session_id, "reason": field_name},
            )
            return StepResult(action="invalid", step=self.step, message=message, errors=errors.as_dict())

        if not self.is_authenticated:
            return StepResult(
                action="login_required",
                step=self._steps.continue_from_patient_details(authenticated=False),
            )

        epoch = self._epoch
        result = self._create_appointment.execute(self._provider.id, self._form, self._auth_token)
        if not self._is_current(epoch):
            self._logger.info(
                "Discarding settled booking response",
                extra={"session_id": self.session_id, "action": result.action},
            )
            return StepResult(action="discarded", step=self.step, message=result.message)

        if result.action == "booked":
            step = self._steps.continue_from_patient_details(authenticated=True, booking_succeeded=True)
            return StepResult(action="booked", step=step, message=result.message)
        if result.action == "invalid":
            self._errors.add("service", result.message)
        return StepResult(action=result.action, step=self.step, message=result.message)

    def _check_selected_slot(self, draft: BookingDraft) -> ValidationErrors:
        """The stored time must still be an open slot of the stored date."""
        errors = ValidationErrors()
        day = parse_iso_date(draft.date)
        if day is None or day < self.today():
            errors.add("date", "Please select a date that is not in the past")
        elif draft.time not in self.slots_for(day):
            errors.add("time", "This time is not available on the selected date")
        return errors

    def continue_as_guest(self) -> StepResult:
        self._guest = True
        return StepResult(action="advanced", step=self._steps.continue_as_guest())

    def complete_oauth(self, id_token: str) -> StepResult:
        epoch = self._epoch
        try:
            auth_token = self._oauth.oauth_login(id_token)
        except AuthenticationError as e:
            self._logger.warning("OAuth login rejected", extra={"session_id": self.session_id, "error": str(e)})
            return StepResult(action="failed", step=self.step, message=e.message or "Sign-in failed. Please try again.")
        except CollaboratorError as e:
            self._logger.error("OAuth login failed", extra={"session_id": self.session_id, "error": str(e)})
            return StepResult(action="failed", step=self.step, message="Sign-in failed. Please try again.")
        if not self._is_current(epoch):
            return StepResult(action="discarded", step=self.step)

        self._auth_token = auth_token
        self._profile = self._load_profile()
        if not self._is_current(epoch):
            return StepResult(action="discarded", step=self.step)
        self._prefill_from_profile()
        return self.on_authenticated()

    def on_authenticated(self) -> StepResult:
        """Called whenever authentication becomes true while the login step is showing."""
        return StepResult(action="advanced", step=self._steps.on_authenticated())

    def go_back(self) -> StepResult:
        target = self._steps.back(self.is_authenticated)
        if target is None:
            return StepResult(action="exit", step=self.step, exit_to=self._entry_path)
        return StepResult(action="back", step=target)

    # -- coupon and payment --------------------------------------------------

    def apply_coupon(self, code: str) -> CouponResult:
        result = self._coupon_rule.apply(code)
        self._form = replace(self._form, coupon_code=result.code, coupon_applied=result.applied)
        return result

    def remove_coupon(self) -> CouponResult:
        self._form = replace(self._form, coupon_code="", coupon_applied=False)
        return CouponResult(applied=False, code="", message="Coupon removed")

    def price_summary(self) -> dict[str, Decimal | None]:
        draft = self._draft_store.load()
        base = service_price(draft.service)
        if base is None:
            return {"price": None, "discount": None, "total": None}
        discount = self._coupon_rule.discount_for(base, self._form.coupon_applied)
        return {"price": base, "discount": discount, "total": base - discount}

    def payment_email(self) -> str:
        if self._profile and self._profile.preferred_email:
            return self._profile.preferred_email
        return self._form.booker.email or self._form.patient.email

    def confirm_and_pay(self) -> PaymentResult:
        result = self._initialize_payment.execute(
            email=self.payment_email(),
            coupon_applied=self._form.coupon_applied,
            auth_token=self._auth_token,
        )
        if result.errors:
            for field_name, message in result.errors.items():
                self._errors.add(field_name, message)
        return result

    def payment_callback_target(self) -> str:
        appointment_id = self._draft_store.load().appointment_id
        if appointment_id:
            return f"/patient/booking/success?appointmentId={appointment_id}"
        return "/patient/booking/success"

    # -- edit booking modal --------------------------------------------------

    def open_edit_booking(self) -> EditBookingModal:
        provider = self._require_provider()
        self._edit_modal = EditBookingModal(
            provider=provider,
            draft=self._draft_store.load(),
            today=self.today(),
            step_minutes=self._slot_step_minutes,
            duration_minutes=self._slot_duration_minutes,
            horizon_days=self._horizon_days,
        )
        return self._edit_modal

    @property
    def edit_modal(self) -> EditBookingModal | None:
        return self._edit_modal

    def commit_edit_booking(self) -> BookingDraft:
        provider = self._require_provider()
        if self._edit_modal is None:
            raise ValueError("Edit booking is not open")
        commit = self._edit_modal.commit()
        draft = self._draft_store.update(
            BookingDraft(
                provider=provider.snapshot(),
                service=commit.service,
                date=commit.date,
                time=commit.time,
            )
        )
        self._edit_modal = None
        for key in ("service", "date", "time"):
            self._errors.clear_field(key)
        self._logger.info("Booking details updated", extra={"session_id": self.session_id})
        return draft

    def cancel_edit_booking(self) -> None:
        self._edit_modal = None

    # -- view ----------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        draft = self._draft_store.load()
        summary = self.price_summary()
        return {
            "session_id": self.session_id,
            "step": self.step.value,
            "authenticated": self.is_authenticated,
            "provider_id": self._provider.id if self._provider else None,
            "draft": draft.to_payload(),
            "service_name": service_name(draft.service),
            "services": self._provider.service_names() if self._provider else [],
            "form": self._form,
            "errors": self._errors.as_dict(),
            "booking_in_flight": self.booking_in_flight,
            "payment_in_flight": self.payment_in_flight,
            "price": summary["price"],
            "discount": summary["discount"],
            "total": summary["total"],
            "coupon_applied": self._form.coupon_applied,
        }
