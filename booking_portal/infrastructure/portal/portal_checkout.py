from __future__ import annotations

import logging
from decimal import Decimal

from booking_portal.application.exceptions import AuthenticationError
from booking_portal.application.ports.oauth import OAuthPort
from booking_portal.application.ports.payments import PaymentPort
from booking_portal.infrastructure.portal.api_client import PortalApiClient, PortalApiError


class PortalPayments(PaymentPort):
    def __init__(self, client: PortalApiClient, callback_url: str | None = None) -> None:
        self._client = client
        self._callback_url = callback_url
        self._logger = logging.getLogger(__name__)

    def initialize_payment(
        self,
        appointment_id: str,
        amount: Decimal,
        email: str,
        auth_token: str | None,
    ) -> str | None:
        payload = {
            "appointmentId": appointment_id,
            # Gateway expects a JSON number in major units
            "amount": float(amount),
            "email": email,
        }
        if self._callback_url:
            payload["callback_url"] = self._callback_url

        body = self._client.request("POST", "/api/v1/payments/initialize", auth_token=auth_token, json=payload)
        data = body.get("data") or {}
        url = data.get("authorization_url") if isinstance(data, dict) else None
        if not url:
            self._logger.warning("Payment gateway returned no URL", extra={"appointment_id": appointment_id})
        return url or None


class PortalOAuth(OAuthPort):
    def __init__(self, client: PortalApiClient) -> None:
        self._client = client

    def oauth_login(self, id_token: str) -> str:
        try:
            body = self._client.request("POST", "/api/v1/auth/oauth", json={"id_token": id_token})
        except PortalApiError as e:
            if e.status_code in (400, 401, 403):
                raise AuthenticationError(e.message or "Sign-in was rejected", e.status_code) from e
            raise
        data = body.get("data") or {}
        token = (data.get("token") if isinstance(data, dict) else None) or body.get("token")
        if not token:
            raise AuthenticationError("Sign-in did not return a session token")
        return str(token)
