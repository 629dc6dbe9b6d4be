from __future__ import annotations

from abc import ABC, abstractmethod

from booking_portal.domain.entities.provider import Provider


class ProviderCatalogPort(ABC):
    @abstractmethod
    def get_provider(self, provider_id: str) -> Provider | None:
        """Provider with its services and weekly working hours. Returns None if unknown."""
        raise NotImplementedError
