from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any

from booking_portal.application.ports.session_storage import SessionStoragePort

_SAFE_SESSION_ID = re.compile(r"[^A-Za-z0-9_.-]")


class JsonSessionStorage(SessionStoragePort):
    """One JSON file per session holding that session's key/value items."""

    def __init__(self, data_dir: str = "./data/sessions") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create a lock for a session_id."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path:
        safe_id = _SAFE_SESSION_ID.sub("_", session_id) or "_"
        return self._data_dir / f"{safe_id}.json"

    def _load_session_data(self, session_id: str) -> dict[str, Any]:
        """Load session items, return empty items if the file is missing or corrupted."""
        file_path = self._get_file_path(session_id)
        if not file_path.exists():
            return {"session_id": session_id, "items": {}, "version": 1}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {"session_id": session_id, "items": {}, "version": 1}

        if not isinstance(data, dict) or not isinstance(data.get("items"), dict):
            return {"session_id": session_id, "items": {}, "version": 1}
        return data

    def _save_session_data(self, session_id: str, data: dict[str, Any]) -> None:
        """Save session data to JSON file atomically."""
        file_path = self._get_file_path(session_id)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def get_item(self, session_id: str, key: str) -> str | None:
        with self._get_lock(session_id):
            value = self._load_session_data(session_id)["items"].get(key)
            return value if isinstance(value, str) else None

    def set_item(self, session_id: str, key: str, value: str) -> None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            data["items"][key] = value
            self._save_session_data(session_id, data)

    def remove_item(self, session_id: str, key: str) -> None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            if data["items"].pop(key, None) is None:
                return
            self._save_session_data(session_id, data)
