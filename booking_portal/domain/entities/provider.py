from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from booking_portal.domain.entities.service import (
    DetailedService,
    Service,
    service_from_payload,
    service_name,
)
from booking_portal.domain.entities.working_hours import WorkingHoursEntry, WorkingHoursIndex


@dataclass(frozen=True)
class ProviderSnapshot:
    """Denormalized copy of the provider stored in the draft."""

    id: str
    name: str = ""
    address: str | None = None
    image: str | None = None

    @staticmethod
    def from_payload(payload: Any) -> "ProviderSnapshot | None":
        if not isinstance(payload, dict):
            return None
        provider_id = payload.get("id") or payload.get("_id")
        if not provider_id:
            return None
        return ProviderSnapshot(
            id=str(provider_id),
            name=str(payload.get("name") or ""),
            address=payload.get("address"),
            image=payload.get("image"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "address": self.address, "image": self.image}


@dataclass(frozen=True)
class Provider:
    id: str
    name: str
    address: str | None = None
    image: str | None = None
    services: tuple[Service, ...] = ()
    working_hours: tuple[WorkingHoursEntry, ...] = ()

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "Provider":
        services = []
        for raw in payload.get("services") or []:
            service = service_from_payload(raw)
            if service and service.name:
                services.append(service)

        working_hours = []
        for raw in payload.get("working_hours") or payload.get("workingHours") or []:
            if isinstance(raw, dict):
                entry = WorkingHoursEntry.from_payload(raw)
                if entry:
                    working_hours.append(entry)

        return Provider(
            id=str(payload.get("id") or payload.get("_id") or ""),
            name=str(payload.get("name") or ""),
            address=payload.get("address"),
            image=payload.get("image"),
            services=tuple(services),
            working_hours=tuple(working_hours),
        )

    def snapshot(self) -> ProviderSnapshot:
        return ProviderSnapshot(id=self.id, name=self.name, address=self.address, image=self.image)

    def working_hours_index(self) -> WorkingHoursIndex:
        return WorkingHoursIndex.build(self.working_hours)

    def service_names(self) -> list[str]:
        return [service_name(s) for s in self.services]

    def find_service(self, key: str | None) -> Service | None:
        """Find a service by id, or by exact name, falling back to a case-insensitive name match."""
        if not key:
            return None
        for service in self.services:
            if isinstance(service, DetailedService) and service.id == key:
                return service
        for service in self.services:
            if service.name == key:
                return service
        wanted = key.strip().lower()
        for service in self.services:
            if service.name.strip().lower() == wanted:
                return service
        return None
