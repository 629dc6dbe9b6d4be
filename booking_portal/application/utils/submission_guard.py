from __future__ import annotations

import threading


class SubmissionGuard:
    """
    Single-slot latch for a network side effect.

    A second attempt while one is in flight is dropped, not queued.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()
