"""
Tests for the httpx portal adapters against a stubbed transport.
"""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from booking_portal.application.exceptions import AuthenticationError, CollaboratorError, DuplicateSlotError
from booking_portal.application.ports.appointments import AppointmentRequest
from booking_portal.infrastructure.portal.api_client import PortalApiClient
from booking_portal.infrastructure.portal.mock_portal import SAMPLE_PROVIDER_PAYLOAD
from booking_portal.infrastructure.portal.portal_appointments import PortalAppointments
from booking_portal.infrastructure.portal.portal_checkout import PortalOAuth, PortalPayments
from booking_portal.infrastructure.portal.portal_directory import PortalProfileDirectory, PortalProviderCatalog

REQUEST = AppointmentRequest(
    provider_id="prov-1",
    service_id="svc-consult",
    date="2025-06-03",
    start_time="11:00 AM",
    end_time="11:30 AM",
)


def _client(handler) -> PortalApiClient:
    return PortalApiClient("https://portal.example.test/", transport=httpx.MockTransport(handler))


def test_requests_carry_bearer_token_and_base_url():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"appointment": {"_id": "appt-1"}}})

    response = PortalAppointments(_client(handler)).create_appointment(REQUEST, "token-1")

    assert response.success
    assert response.appointment.id == "appt-1"
    assert str(seen[0].url) == "https://portal.example.test/api/v1/appointments/book"
    assert seen[0].headers["Authorization"] == "Bearer token-1"
    assert json.loads(seen[0].content)["end_time"] == "11:30 AM"


@pytest.mark.parametrize(
    "status, body",
    [
        (409, {"message": "Slot unavailable"}),
        (500, {"message": "write failed", "code": 11000}),
        (400, {"error": {"message": "E11000 Duplicate Key error collection: appointments"}}),
    ],
)
def test_duplicate_slot_detection(status, body):
    adapter = PortalAppointments(_client(lambda request: httpx.Response(status, json=body)))

    with pytest.raises(DuplicateSlotError):
        adapter.create_appointment(REQUEST, None)


def test_other_failures_are_collaborator_errors_with_message():
    adapter = PortalAppointments(_client(lambda request: httpx.Response(503, json={"message": "Try later"})))

    with pytest.raises(CollaboratorError) as excinfo:
        adapter.create_appointment(REQUEST, None)

    assert not isinstance(excinfo.value, DuplicateSlotError)
    assert excinfo.value.message == "Try later"
    assert excinfo.value.status_code == 503


def test_network_errors_are_collaborator_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(CollaboratorError):
        PortalProviderCatalog(_client(handler)).get_provider("prov-1")


def test_appointment_list_is_cached_until_invalidated():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"data": [{"id": "appt-1"}, {"status": "no id"}]})

    adapter = PortalAppointments(_client(handler))

    assert [a.id for a in adapter.list_appointments("token-1")] == ["appt-1"]
    adapter.list_appointments("token-1")
    assert len(calls) == 1

    adapter.invalidate_cached_appointments("token-1")
    adapter.list_appointments("token-1")
    assert len(calls) == 2


def test_provider_lookup():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/prov-1"):
            return httpx.Response(200, json={"success": True, "data": SAMPLE_PROVIDER_PAYLOAD})
        return httpx.Response(404, json={"message": "Provider not found"})

    catalog = PortalProviderCatalog(_client(handler))
    provider = catalog.get_provider("prov-1")

    assert provider.service_names() == ["General Consultation", "Dental Check-up"]
    assert provider.working_hours_index().lookup("monday").start_time == "9:00 AM"
    assert catalog.get_provider("prov-404") is None


def test_profile_is_none_without_accepted_token():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == "Bearer good":
            return httpx.Response(
                200,
                json={
                    "data": {
                        "id": "patient-1",
                        "email": "ada@example.com",
                        "personal_details": {"first_name": "Ada", "last_name": "Obi", "gender": "female"},
                        "contact_details": {"email_address": "ada.contact@example.com"},
                    }
                },
            )
        return httpx.Response(401, json={"message": "Unauthorized"})

    directory = PortalProfileDirectory(_client(handler))
    profile = directory.get_current_patient_profile("good")

    assert profile.full_name == "Ada Obi"
    assert profile.gender == "Female"
    assert profile.preferred_email == "ada.contact@example.com"
    assert directory.get_current_patient_profile("expired") is None
    assert directory.get_current_patient_profile(None) is None


def test_payment_initialization_sends_callback_and_returns_url():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"authorization_url": "https://pay.example.test/abc"}})

    payments = PortalPayments(_client(handler), callback_url="https://portal.example.test/payment/callback")

    url = payments.initialize_payment("appt-1", Decimal("7500.00"), "ada@example.com", "token-1")

    assert url == "https://pay.example.test/abc"
    assert seen[0] == {
        "appointmentId": "appt-1",
        "amount": 7500.0,
        "email": "ada@example.com",
        "callback_url": "https://portal.example.test/payment/callback",
    }


def test_oauth_rejection_is_authentication_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content)["id_token"] == "good":
            return httpx.Response(200, json={"data": {"token": "session-token"}})
        return httpx.Response(401, json={"message": "Invalid identity token"})

    oauth = PortalOAuth(_client(handler))

    assert oauth.oauth_login("good") == "session-token"
    with pytest.raises(AuthenticationError):
        oauth.oauth_login("forged")
