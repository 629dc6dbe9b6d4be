from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal


class PaymentPort(ABC):
    @abstractmethod
    def initialize_payment(
        self,
        appointment_id: str,
        amount: Decimal,
        email: str,
        auth_token: str | None,
    ) -> str | None:
        """Start a gateway checkout. Returns the authorization URL, or None if the gateway gave none."""
        raise NotImplementedError
