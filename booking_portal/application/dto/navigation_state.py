from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from booking_portal.domain.entities.booking_draft import BookingDraft
from booking_portal.domain.entities.provider import ProviderSnapshot
from booking_portal.domain.entities.service import service_from_payload


class NavigationStateDTO(BaseModel):
    """Selections handed over by the page that opened the booking flow."""

    provider: dict[str, Any] | None = None
    service: str | dict[str, Any] | None = None
    date: str | None = None
    time: str | None = None

    def to_draft(self) -> BookingDraft:
        return BookingDraft(
            provider=ProviderSnapshot.from_payload(self.provider),
            service=service_from_payload(self.service),
            date=(self.date or "").strip() or None,
            time=(self.time or "").strip() or None,
        )
