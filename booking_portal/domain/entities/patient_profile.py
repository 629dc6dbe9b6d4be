from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PatientProfile:
    id: str | None
    full_name: str = ""
    email: str = ""
    contact_email: str = ""
    phone: str = ""
    address: str = ""
    gender: str = ""
    date_of_birth: str = ""

    @staticmethod
    def from_payload(payload: dict[str, Any] | None) -> "PatientProfile | None":
        if not isinstance(payload, dict):
            return None
        personal = payload.get("personal_details") or {}
        contact = payload.get("contact_details") or {}
        location = payload.get("location_details") or {}

        full_name = payload.get("full_name") or (
            f"{personal.get('first_name') or ''} {personal.get('last_name') or ''}".strip()
        )
        gender = str(personal.get("gender") or "")
        if gender:
            gender = gender[:1].upper() + gender[1:].lower()

        profile_id = payload.get("id") or payload.get("_id")
        return PatientProfile(
            id=str(profile_id) if profile_id else None,
            full_name=full_name,
            email=str(payload.get("email") or ""),
            contact_email=str(contact.get("email_address") or ""),
            phone=str(contact.get("phone_number") or payload.get("phone_number") or ""),
            address=str(location.get("address") or ""),
            gender=gender,
            date_of_birth=str(personal.get("date_of_birth") or ""),
        )

    @property
    def preferred_email(self) -> str:
        return self.contact_email or self.email
