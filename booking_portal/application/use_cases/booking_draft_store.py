from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace

from booking_portal.application.ports.session_storage import SessionStoragePort
from booking_portal.domain.entities.booking_draft import BookingDraft, merge_drafts


class BookingDraftStore:
    """
    Persisted snapshot of an in-progress booking for one browser session.

    Reads never raise: a missing or corrupted entry loads as an empty draft.
    Writers go through `update`, which performs read-merge-write under a lock.
    """

    def __init__(self, storage: SessionStoragePort, session_id: str, key: str = "bookingDraft") -> None:
        self._storage = storage
        self._session_id = session_id
        self._key = key
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    def load(self) -> BookingDraft:
        try:
            raw = self._storage.get_item(self._session_id, self._key)
        except OSError as e:
            self._logger.warning(
                "Draft storage unreadable; starting empty",
                extra={"session_id": self._session_id, "error": str(e)},
            )
            return BookingDraft()
        if not raw:
            return BookingDraft()
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            self._logger.warning(
                "Corrupted booking draft ignored",
                extra={"session_id": self._session_id, "error": str(e)},
            )
            return BookingDraft()
        return BookingDraft.from_payload(payload)

    def merge(self, partial: BookingDraft, previous: BookingDraft | None = None) -> BookingDraft:
        """Merge `partial` over `previous` (the stored draft by default) without writing."""
        if previous is None:
            previous = self.load()
        return merge_drafts(previous, partial)

    def save(self, draft: BookingDraft) -> None:
        try:
            with self._lock:
                self._storage.set_item(self._session_id, self._key, json.dumps(draft.to_payload()))
        except OSError as e:
            self._logger.error(
                "Failed to persist booking draft",
                extra={"session_id": self._session_id, "error": str(e)},
            )

    def update(self, partial: BookingDraft) -> BookingDraft:
        """Write-through a partial change. Returns the stored result."""
        with self._lock:
            merged = self.merge(partial)
            self.save(merged)
            return merged

    def overwrite(self, **changes) -> BookingDraft:
        """Overwrite fields outright, so a field can be cleared. Returns the stored result."""
        with self._lock:
            draft = replace(self.load(), **changes)
            self.save(draft)
            return draft

    def clear(self) -> None:
        try:
            with self._lock:
                self._storage.remove_item(self._session_id, self._key)
        except OSError as e:
            self._logger.error(
                "Failed to clear booking draft",
                extra={"session_id": self._session_id, "error": str(e)},
            )
