from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from booking_portal.domain.entities.service import Service, service_price

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CouponResult:
    applied: bool
    code: str
    message: str


class CouponRule:
    """Client-side percentage coupon."""

    def __init__(self, code: str = "IJKZYB", discount_percent: int = 25) -> None:
        self._code = code.strip().upper()
        self._discount_percent = Decimal(discount_percent)

    @staticmethod
    def normalize(code: str | None) -> str:
        return (code or "").strip().upper()

    def apply(self, code: str | None) -> CouponResult:
        normalized = self.normalize(code)
        if not normalized:
            return CouponResult(applied=False, code="", message="Please enter a coupon code")
        if normalized != self._code:
            return CouponResult(applied=False, code=normalized, message="Invalid coupon code")
        return CouponResult(
            applied=True,
            code=normalized,
            message=f"Coupon applied! {self._discount_percent}% discount applied",
        )

    def discount_for(self, base: Decimal, coupon_applied: bool) -> Decimal:
        if not coupon_applied:
            return Decimal("0")
        return (base * self._discount_percent / Decimal(100)).quantize(_CENTS, rounding=ROUND_HALF_UP)

    def amount_due(self, service: Service | None, coupon_applied: bool) -> Decimal:
        """Service price minus the coupon discount; zero when the service has no price."""
        base = service_price(service) or Decimal("0")
        return base - self.discount_for(base, coupon_applied)
