"""
Tests for draft merging, mount reconciliation and durable draft storage.
"""

from __future__ import annotations

import json
import tempfile
from decimal import Decimal
from pathlib import Path

from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.domain.entities.appointment import Appointment
from booking_portal.domain.entities.booking_draft import BookingDraft, merge_drafts, reconcile_on_mount
from booking_portal.domain.entities.provider import ProviderSnapshot
from booking_portal.domain.entities.service import DetailedService, NamedService
from booking_portal.infrastructure.store.json_store import JsonSessionStorage
from booking_portal.infrastructure.store.memory_store import MemorySessionStorage

CLINIC = ProviderSnapshot(id="prov-1", name="Lagoon Family Clinic")
OTHER_CLINIC = ProviderSnapshot(id="prov-2", name="Harbour Dental")
CONSULT = DetailedService(id="svc-consult", name="General Consultation", price=Decimal("10000"))


def test_merge_keeps_fields_the_partial_leaves_empty():
    previous = BookingDraft(provider=CLINIC, service=CONSULT, date="2025-06-02", time="9:00 AM")

    merged = merge_drafts(previous, BookingDraft(time="10:00 AM"))

    assert merged.provider == CLINIC
    assert merged.service == CONSULT
    assert merged.date == "2025-06-02"
    assert merged.time == "10:00 AM"


def test_merge_never_replaces_detailed_service_with_bare_name():
    previous = BookingDraft(service=CONSULT)

    assert merge_drafts(previous, BookingDraft(service=NamedService("General Consultation"))).service == CONSULT
    other = DetailedService(id="svc-dental", name="Dental Check-up")
    assert merge_drafts(previous, BookingDraft(service=other)).service == other


def test_reconcile_discards_draft_from_another_provider():
    stored = BookingDraft(
        provider=OTHER_CLINIC,
        service=CONSULT,
        date="2025-06-02",
        time="9:00 AM",
        appointment=Appointment(id="appt-1"),
    )
    navigation = BookingDraft(provider=CLINIC, date="2025-06-03")

    reconciled = reconcile_on_mount(stored, navigation, "prov-1")

    assert reconciled.provider == CLINIC
    assert reconciled.date == "2025-06-03"
    assert reconciled.service is None
    assert reconciled.time is None
    assert reconciled.appointment is None


def test_reconcile_prefers_stored_fields_for_same_provider():
    stored = BookingDraft(provider=CLINIC, service=CONSULT, date="2025-06-02", appointment=Appointment(id="appt-1"))
    navigation = BookingDraft(provider=CLINIC, date="2025-06-09", time="11:00 AM")

    reconciled = reconcile_on_mount(stored, navigation, "prov-1")

    assert reconciled.date == "2025-06-02"
    assert reconciled.time == "11:00 AM"
    assert reconciled.appointment_id == "appt-1"


def test_draft_payload_round_trip_keeps_service_shape():
    draft = BookingDraft(provider=CLINIC, service=CONSULT, date="2025-06-02", time="9:00 AM")

    restored = BookingDraft.from_payload(json.loads(json.dumps(draft.to_payload())))

    assert restored == draft
    assert isinstance(restored.service, DetailedService)
    assert restored.service.price == Decimal("10000")
    assert BookingDraft.from_payload({"service": "Dental Check-up"}).service == NamedService("Dental Check-up")


def test_draft_store_survives_a_restart():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = BookingDraftStore(JsonSessionStorage(data_dir=tmpdir), "browser-1")
        store.update(BookingDraft(provider=CLINIC, service=CONSULT))
        store.update(BookingDraft(date="2025-06-02", time="9:00 AM"))

        reopened = BookingDraftStore(JsonSessionStorage(data_dir=tmpdir), "browser-1")
        draft = reopened.load()

        assert draft.provider_id == "prov-1"
        assert draft.service == CONSULT
        assert draft.date == "2025-06-02"
        assert draft.time == "9:00 AM"


def test_corrupted_draft_loads_as_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonSessionStorage(data_dir=tmpdir)
        storage.set_item("browser-1", "bookingDraft", "{not json")
        store = BookingDraftStore(storage, "browser-1")

        assert store.load().is_empty()

        Path(tmpdir, "browser-1.json").write_text("garbage", encoding="utf-8")
        assert storage.get_item("browser-1", "bookingDraft") is None
        assert store.load().is_empty()


def test_merge_does_not_write_until_update():
    storage = MemorySessionStorage()
    store = BookingDraftStore(storage, "browser-1")
    store.save(BookingDraft(provider=CLINIC))

    merged = store.merge(BookingDraft(date="2025-06-02"))

    assert merged.date == "2025-06-02"
    assert store.load().date is None
    store.clear()
    assert storage.get_item("browser-1", "bookingDraft") is None


def test_sessions_do_not_share_drafts():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonSessionStorage(data_dir=tmpdir)
        BookingDraftStore(storage, "browser-1").update(BookingDraft(date="2025-06-02"))

        assert BookingDraftStore(storage, "browser-2").load().is_empty()
        assert not list(Path(tmpdir).glob("*.tmp"))
