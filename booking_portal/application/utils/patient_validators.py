from __future__ import annotations

import re
from datetime import date

from booking_portal.application.utils.calendar_dates import parse_iso_date
from booking_portal.domain.entities.booking_draft import BookingDraft
from booking_portal.domain.entities.booking_form import AppointmentFor, BookingFormState, ContactDetails
from booking_portal.domain.entities.service import service_id
from booking_portal.domain.entities.validation import ValidationErrors

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
STRICT_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MIN_BIRTH_YEAR = 1900
MIN_FULL_NAME_LENGTH = 3


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match((value or "").strip()))


def is_valid_phone(value: str, country_code: str = "234") -> bool:
    """
    Accepts +<country><10 digits>, <country><10 digits> or 0<10 digits,
    after removing spaces and hyphens.
    """
    compact = re.sub(r"[\s-]", "", value or "")
    code = re.escape(country_code)
    patterns = (
        rf"^\+{code}\d{{10}}$",
        rf"^{code}\d{{10}}$",
        r"^0\d{10}$",
    )
    return any(re.match(pattern, compact) for pattern in patterns)


def age_on(birth: date, today: date) -> int:
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


def date_of_birth_error(value: str, today: date, min_age_years: int = 2) -> str | None:
    """Return a message when `value` is not an acceptable date of birth, else None."""
    text = (value or "").strip()
    if not text:
        return "Date of birth is required"
    if not STRICT_DATE_PATTERN.match(text):
        return "Date of birth must be in YYYY-MM-DD format"
    birth = parse_iso_date(text)
    if birth is None:
        return "Date of birth is not a valid calendar date"
    if birth.year < MIN_BIRTH_YEAR or birth.year > today.year:
        return f"Birth year must be between {MIN_BIRTH_YEAR} and {today.year}"
    if birth > today:
        return "Date of birth cannot be in the future"
    if age_on(birth, today) < min_age_years:
        return f"Patient must be at least {min_age_years} years old"
    return None


def is_valid_date_of_birth(value: str, today: date, min_age_years: int = 2) -> bool:
    return date_of_birth_error(value, today, min_age_years) is None


def is_valid_full_name(value: str) -> bool:
    return len((value or "").strip()) >= MIN_FULL_NAME_LENGTH


def _validate_contact(
    errors: ValidationErrors,
    contact: ContactDetails,
    prefix: str,
    today: date,
    country_code: str,
    min_age_years: int,
    identity_only: bool = False,
) -> None:
    if not is_valid_full_name(contact.full_name):
        errors.add(f"{prefix}full_name", f"Full name must be at least {MIN_FULL_NAME_LENGTH} characters")
    if not contact.email.strip():
        errors.add(f"{prefix}email", "Email is required")
    elif not is_valid_email(contact.email):
        errors.add(f"{prefix}email", "Please enter a valid email address")
    if not contact.phone.strip():
        errors.add(f"{prefix}phone", "Mobile number is required")
    elif not is_valid_phone(contact.phone, country_code):
        errors.add(f"{prefix}phone", "Please enter a valid mobile number")
    if identity_only:
        return
    if not contact.gender.strip():
        errors.add(f"{prefix}gender", "Gender is required")
    dob_error = date_of_birth_error(contact.date_of_birth, today, min_age_years)
    if dob_error:
        errors.add(f"{prefix}date_of_birth", dob_error)


def validate_booking(
    form: BookingFormState,
    draft: BookingDraft,
    today: date,
    country_code: str = "234",
    min_age_years: int = 2,
) -> ValidationErrors:
    """
    Decide whether the patient-details step may advance.

    Selection errors (service, date, time) are reported alone; identity
    fields are only checked once a slot is fully chosen. Field order is
    the order of the form so `first()` is deterministic.
    """
    errors = ValidationErrors()
    if not service_id(draft.service):
        errors.add("service", "Please select a service")
    if not draft.date:
        errors.add("date", "Please select a date")
    if not draft.time:
        errors.add("time", "Please select a time")
    if errors:
        return errors

    if form.visited_before and not form.identification_number.strip():
        errors.add("identification_number", "Please enter your identification number")

    if form.appointment_for == AppointmentFor.other:
        _validate_contact(errors, form.booker, "", today, country_code, min_age_years, identity_only=True)
        _validate_contact(errors, form.patient, "patient_", today, country_code, min_age_years)
    else:
        _validate_contact(errors, form.booker, "", today, country_code, min_age_years)
    return errors
