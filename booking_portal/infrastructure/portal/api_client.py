from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_portal.application.exceptions import CollaboratorError


class PortalApiError(CollaboratorError):
    """Non-2xx answer from the portal API; keeps the server's error code when it sent one."""

    def __init__(self, message: str | None, status_code: int | None, error_code: Any = None) -> None:
        super().__init__(message, status_code)
        self.error_code = error_code


def _extract_error(resp: httpx.Response) -> tuple[str | None, Any]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or None, None
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or body.get("message"), error.get("code")
    message = body.get("message") or (error if isinstance(error, str) else None)
    return message, body.get("code")


class PortalApiClient:
    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._logger = logging.getLogger(__name__)

    def request(
        self,
        method: str,
        path: str,
        auth_token: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        try:
            resp = self._client.request(method, url, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error("Portal request failed", extra={"action": f"{method} {path}", "error": str(e)})
            raise CollaboratorError(None) from e

        if resp.status_code >= 400:
            message, error_code = _extract_error(resp)
            self._logger.error(
                "Portal request rejected",
                extra={
                    "action": f"{method} {path}",
                    "status": resp.status_code,
                    "error_code": error_code,
                    "error": message,
                },
            )
            raise PortalApiError(message, resp.status_code, error_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise CollaboratorError("Unexpected response from the portal API", resp.status_code) from e
        return body if isinstance(body, dict) else {"data": body}

    def close(self) -> None:
        self._client.close()
