from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Appointment:
    id: str
    fields: dict[str, Any] = field(default_factory=dict, compare=False)  # server fields as returned

    @staticmethod
    def from_payload(payload: Any) -> "Appointment | None":
        if not isinstance(payload, dict):
            return None
        appointment_id = payload.get("id") or payload.get("_id")
        if not appointment_id:
            return None
        return Appointment(id=str(appointment_id), fields=dict(payload))

    def to_payload(self) -> dict[str, Any]:
        payload = dict(self.fields)
        payload["id"] = self.id
        return payload
