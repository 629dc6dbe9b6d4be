from __future__ import annotations

from datetime import date
from decimal import Decimal

from booking_portal.application.utils.patient_validators import (
    date_of_birth_error,
    is_valid_date_of_birth,
    is_valid_email,
    is_valid_phone,
    validate_booking,
)
from booking_portal.domain.entities.booking_draft import BookingDraft
from booking_portal.domain.entities.booking_form import AppointmentFor, BookingFormState, ContactDetails
from booking_portal.domain.entities.service import DetailedService, NamedService

TODAY = date(2025, 6, 2)
CONSULT = DetailedService(id="svc-consult", name="General Consultation", price=Decimal("10000"))
FULL_DRAFT = BookingDraft(service=CONSULT, date="2025-06-03", time="9:00 AM")

ADA = ContactDetails(
    full_name="Ada Obi",
    email="ada@example.com",
    phone="08012345678",
    address="12 Marina Road",
    gender="Female",
    date_of_birth="1990-04-12",
)


def test_phone_formats():
    assert is_valid_phone("+2348012345678")
    assert is_valid_phone("08012345678")
    assert is_valid_phone("2348012345678")
    assert is_valid_phone("0801 234-5678")
    assert not is_valid_phone("8012345678")
    assert not is_valid_phone("234801234567")
    assert not is_valid_phone("123")
    assert not is_valid_phone("+2348012345")
    assert not is_valid_phone("+447801234567")
    assert is_valid_phone("+447801234567", country_code="44")


def test_email_format():
    assert is_valid_email("ada@example.com")
    assert not is_valid_email("ada@example")
    assert not is_valid_email("ada example@x.com")


def test_date_of_birth_minimum_age_is_inclusive():
    assert is_valid_date_of_birth("2023-06-02", TODAY)
    assert date_of_birth_error("2023-07-02", TODAY) == "Patient must be at least 2 years old"


def test_date_of_birth_rejections():
    assert date_of_birth_error("", TODAY) == "Date of birth is required"
    assert date_of_birth_error("02/06/1990", TODAY) == "Date of birth must be in YYYY-MM-DD format"
    assert date_of_birth_error("2023-02-30", TODAY) == "Date of birth is not a valid calendar date"
    assert date_of_birth_error("1899-12-31", TODAY) == "Birth year must be between 1900 and 2025"
    assert date_of_birth_error("2025-12-01", TODAY) == "Date of birth cannot be in the future"


def test_selection_errors_are_reported_alone():
    errors = validate_booking(BookingFormState(), BookingDraft(service=NamedService("General Consultation")), TODAY)

    assert list(errors) == ["service", "date", "time"]
    assert errors.first() == ("service", "Please select a service")


def test_self_booking_requires_identification_when_visited_before():
    form = BookingFormState(booker=ADA)

    errors = validate_booking(form, FULL_DRAFT, TODAY)

    assert list(errors) == ["identification_number"]
    assert not validate_booking(BookingFormState(booker=ADA, identification_number="HOSP-1"), FULL_DRAFT, TODAY)
    assert not validate_booking(BookingFormState(booker=ADA, visited_before=False), FULL_DRAFT, TODAY)


def test_self_booking_validates_every_booker_field():
    form = BookingFormState(
        visited_before=False,
        booker=ContactDetails(full_name="Al", email="bad", phone="123", gender="", date_of_birth=""),
    )

    errors = validate_booking(form, FULL_DRAFT, TODAY)

    assert list(errors) == ["full_name", "email", "phone", "gender", "date_of_birth"]
    assert errors["date_of_birth"] == "Date of birth is required"


def test_other_booking_validates_booker_identity_and_patient_record():
    form = BookingFormState(
        appointment_for=AppointmentFor.other,
        visited_before=False,
        booker=ContactDetails(full_name="Ada Obi", email="ada@example.com", phone="08012345678"),
        patient=ContactDetails(full_name="Chidi Obi", email="chidi@example.com", phone="08087654321", gender="Male"),
    )

    errors = validate_booking(form, FULL_DRAFT, TODAY)

    assert list(errors) == ["patient_date_of_birth"]
    assert form.attendee.full_name == "Chidi Obi"
