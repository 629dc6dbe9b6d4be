from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from booking_portal.domain.entities.appointment import Appointment
from booking_portal.domain.entities.provider import ProviderSnapshot
from booking_portal.domain.entities.service import (
    DetailedService,
    NamedService,
    Service,
    is_blank_service,
    service_from_payload,
    service_to_payload,
)


@dataclass(frozen=True)
class BookingDraft:
    provider: ProviderSnapshot | None = None
    service: Service | None = None
    date: str | None = None  # YYYY-MM-DD
    time: str | None = None  # slot label, "9:00 AM"
    appointment: Appointment | None = None

    @property
    def appointment_id(self) -> str | None:
        return self.appointment.id if self.appointment else None

    @property
    def provider_id(self) -> str | None:
        return self.provider.id if self.provider else None

    def is_empty(self) -> bool:
        return (
            self.provider is None
            and is_blank_service(self.service)
            and not self.date
            and not self.time
            and self.appointment is None
        )

    @staticmethod
    def from_payload(payload: Any) -> "BookingDraft":
        if not isinstance(payload, dict):
            return BookingDraft()
        date_value = payload.get("date")
        time_value = payload.get("time")
        return BookingDraft(
            provider=ProviderSnapshot.from_payload(payload.get("provider")),
            service=service_from_payload(payload.get("service")),
            date=date_value.strip() or None if isinstance(date_value, str) else None,
            time=time_value.strip() or None if isinstance(time_value, str) else None,
            appointment=Appointment.from_payload(payload.get("appointment")),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.provider:
            payload["provider"] = self.provider.to_payload()
        if not is_blank_service(self.service):
            payload["service"] = service_to_payload(self.service)
        if self.date:
            payload["date"] = self.date
        if self.time:
            payload["time"] = self.time
        if self.appointment:
            payload["appointment"] = self.appointment.to_payload()
        return payload


def _non_empty(value: str | None) -> bool:
    return bool(value and value.strip())


def _merge_service(previous: Service | None, new: Service | None) -> Service | None:
    if is_blank_service(new):
        return previous
    # A bare name never replaces a catalog record
    if isinstance(new, NamedService) and isinstance(previous, DetailedService):
        return previous
    return new


def merge_drafts(previous: BookingDraft, partial: BookingDraft) -> BookingDraft:
    """Shallow merge: non-empty fields of `partial` win, everything else keeps its previous value."""
    return BookingDraft(
        provider=partial.provider or previous.provider,
        service=_merge_service(previous.service, partial.service),
        date=partial.date if _non_empty(partial.date) else previous.date,
        time=partial.time if _non_empty(partial.time) else previous.time,
        appointment=partial.appointment or previous.appointment,
    )


def reconcile_on_mount(stored: BookingDraft, navigation: BookingDraft, provider_id: str) -> BookingDraft:
    """
    Combine the persisted draft with state handed over by navigation.

    When the stored draft belongs to another provider it is stale, so the
    navigation state starts a new draft. Otherwise stored fields win and
    navigation only fills the gaps.
    """
    if stored.provider_id != provider_id:
        return BookingDraft(
            provider=navigation.provider,
            service=navigation.service,
            date=navigation.date,
            time=navigation.time,
        )
    return merge_drafts(navigation, stored)
