"""
Tests for the booking session HTTP surface.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient

from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.application.use_cases.booking_session import BookingSession
from booking_portal.infrastructure.portal.mock_portal import (
    MockAppointments,
    MockOAuth,
    MockPayments,
    MockProfileDirectory,
    MockProviderCatalog,
)
from booking_portal.infrastructure.store.memory_store import MemorySessionStorage
from booking_portal.main import app
from booking_portal.wiring.dependencies import BookingSessionRegistry, get_session_registry

LAGOS = ZoneInfo("Africa/Lagos")
NOW = datetime(2025, 6, 2, 10, 0, tzinfo=LAGOS)
BASE = "/api/v1/booking-sessions/browser-1"


def _client() -> TestClient:
    storage = MemorySessionStorage()
    appointments = MockAppointments()

    def factory(session_id: str) -> BookingSession:
        return BookingSession(
            session_id=session_id,
            provider_catalog=MockProviderCatalog(),
            profiles=MockProfileDirectory(),
            appointments=appointments,
            payments=MockPayments(),
            oauth=MockOAuth(),
            draft_store=BookingDraftStore(storage, session_id),
            timezone=LAGOS,
            now=lambda: NOW,
        )

    registry = BookingSessionRegistry(factory=factory)
    app.dependency_overrides[get_session_registry] = lambda: registry
    return TestClient(app)


def _mount(client: TestClient) -> dict:
    resp = client.post(
        f"{BASE}/mount",
        json={
            "provider_id": "prov-1",
            "navigation": {"service": "General Consultation", "date": "2025-06-03"},
            "entry_path": "/providers/prov-1",
        },
    )
    assert resp.status_code == 200
    return resp.json()


def test_health():
    client = _client()
    assert client.get("/health").json() == {"status": "ok"}


def test_unknown_session_is_404():
    client = _client()

    assert client.get(BASE).status_code == 404
    assert client.post(f"{BASE}/continue").status_code == 404


def test_unknown_provider_is_404():
    client = _client()

    resp = client.post(f"{BASE}/mount", json={"provider_id": "prov-404"})

    assert resp.status_code == 404


def test_full_guest_flow_over_http():
    client = _client()
    mounted = _mount(client)
    assert mounted["session"]["step"] == "appointment"
    assert mounted["session"]["price"] == 10000

    slots = client.get(f"{BASE}/slots", params={"date": "2025-06-03"}).json()
    assert slots["slots"][0] == "9:00 AM"

    assert client.patch(f"{BASE}/selection", json={"time": "9:00 AM"}).status_code == 200
    assert client.post(f"{BASE}/continue").json()["step"] == "patient-details"

    client.patch(
        f"{BASE}/form",
        json={
            "visited_before": False,
            "booker": {
                "full_name": "Ada Obi",
                "email": "ada@example.com",
                "phone": "08012345678",
                "gender": "Female",
                "date_of_birth": "1990-04-12",
            },
        },
    )
    assert client.post(f"{BASE}/continue").json()["step"] == "login"
    assert client.post(f"{BASE}/guest").json()["step"] == "patient-details"

    booked = client.post(f"{BASE}/continue").json()
    assert booked["action"] == "booked"
    assert booked["step"] == "payment"

    coupon = client.post(f"{BASE}/coupon", json={"code": "IJKZYB"}).json()
    assert coupon["applied"]
    assert coupon["session"]["total"] == 7500

    payment = client.post(f"{BASE}/payment").json()
    assert payment["action"] == "redirect"
    assert payment["amount"] == 7500

    callback = client.get(f"{BASE}/payment-callback").json()
    assert callback["redirect_to"].startswith("/patient/booking/success?appointmentId=")


def test_invalid_selection_is_400():
    client = _client()
    _mount(client)

    resp = client.patch(f"{BASE}/selection", json={"date": "2025-05-01"})

    assert resp.status_code == 400


def test_validation_errors_are_returned():
    client = _client()
    _mount(client)
    client.patch(f"{BASE}/selection", json={"time": "9:00 AM"})
    client.post(f"{BASE}/continue")

    body = client.post(f"{BASE}/continue").json()

    assert body["action"] == "invalid"
    assert body["message"] == "Please enter your identification number"
    assert "full_name" in body["errors"]


def test_edit_booking_over_http():
    client = _client()
    _mount(client)

    modal = client.get(f"{BASE}/edit").json()
    assert len(modal["calendar"]) == 35
    assert modal["selected_service"] == "General Consultation"

    updated = client.patch(f"{BASE}/edit", json={"date": "2025-06-04", "time": "10:00 AM"}).json()
    assert updated["selected_time"] == "10:00 AM"
    assert client.patch(f"{BASE}/edit", json={"date": "2025-06-07"}).status_code == 400

    session = client.post(f"{BASE}/edit/commit").json()
    assert session["draft"]["date"] == "2025-06-04"
    assert session["draft"]["time"] == "10:00 AM"


def test_close_then_remount_restores_draft():
    client = _client()
    _mount(client)
    client.patch(f"{BASE}/selection", json={"time": "9:00 AM"})

    assert client.delete(BASE).status_code == 204
    assert client.get(BASE).status_code == 404

    remounted = client.post(f"{BASE}/mount", json={"provider_id": "prov-1"}).json()
    assert remounted["session"]["draft"]["time"] == "9:00 AM"


def test_edit_month_delta_is_bounded():
    client = _client()
    _mount(client)

    assert client.patch(f"{BASE}/edit", json={"month_delta": 10**7}).status_code == 422

    modal = client.patch(f"{BASE}/edit", json={"month_delta": 120}).json()
    assert (modal["year"], modal["month"]) == (2035, 6)
    assert client.get(f"{BASE}/edit").status_code == 200
