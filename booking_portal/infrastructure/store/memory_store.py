from __future__ import annotations

from booking_portal.application.ports.session_storage import SessionStoragePort


class MemorySessionStorage(SessionStoragePort):
    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, str]] = {}

    def get_item(self, session_id: str, key: str) -> str | None:
        return self._sessions.get(session_id, {}).get(key)

    def set_item(self, session_id: str, key: str, value: str) -> None:
        self._sessions.setdefault(session_id, {})[key] = value

    def remove_item(self, session_id: str, key: str) -> None:
        self._sessions.get(session_id, {}).pop(key, None)
