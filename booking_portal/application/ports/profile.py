from __future__ import annotations

from abc import ABC, abstractmethod

from booking_portal.domain.entities.patient_profile import PatientProfile


class ProfilePort(ABC):
    @abstractmethod
    def get_current_patient_profile(self, auth_token: str | None) -> PatientProfile | None:
        """Profile of the signed-in patient. Returns None when the token is missing or not accepted."""
        raise NotImplementedError
