from __future__ import annotations

import logging

from booking_portal.application.ports.profile import ProfilePort
from booking_portal.application.ports.provider_catalog import ProviderCatalogPort
from booking_portal.domain.entities.patient_profile import PatientProfile
from booking_portal.domain.entities.provider import Provider
from booking_portal.infrastructure.portal.api_client import PortalApiClient, PortalApiError


class PortalProviderCatalog(ProviderCatalogPort):
    def __init__(self, client: PortalApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_provider(self, provider_id: str) -> Provider | None:
        try:
            body = self._client.request("GET", f"/api/v1/providers/{provider_id}")
        except PortalApiError as e:
            if e.status_code == 404:
                return None
            raise

        data = body.get("data", body)
        if isinstance(data, dict) and isinstance(data.get("provider"), dict):
            data = data["provider"]
        if not isinstance(data, dict):
            return None
        provider = Provider.from_payload(data)
        if not provider.id:
            provider = Provider.from_payload({**data, "id": provider_id})
        return provider


class PortalProfileDirectory(ProfilePort):
    def __init__(self, client: PortalApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_current_patient_profile(self, auth_token: str | None) -> PatientProfile | None:
        if not auth_token:
            return None
        try:
            body = self._client.request("GET", "/api/v1/auth/me", auth_token=auth_token)
        except PortalApiError as e:
            if e.status_code in (401, 403):
                self._logger.info("Auth token not accepted", extra={"reason": e.status_code})
                return None
            raise
        data = body.get("data", body)
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        return PatientProfile.from_payload(data)
