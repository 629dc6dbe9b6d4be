from pydantic import BaseModel, Field
from typing import Any

from booking_portal.application.dto.navigation_state import NavigationStateDTO


class MountRequestSchema(BaseModel):
    provider_id: str = Field(min_length=1)
    navigation: NavigationStateDTO | None = None
    entry_path: str | None = None


class SelectionRequestSchema(BaseModel):
    service: str | None = None
    date: str | None = None
    time: str | None = None


class ContactSchema(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    gender: str | None = None
    date_of_birth: str | None = None


class FormUpdateSchema(BaseModel):
    appointment_for: str | None = Field(default=None, pattern="^(Self|Other)$")
    visited_before: bool | None = None
    identification_number: str | None = None
    comments: str | None = None
    communication_preference: str | None = None
    booker: ContactSchema | None = None
    patient: ContactSchema | None = None


class OAuthRequestSchema(BaseModel):
    id_token: str = Field(min_length=1)


class CouponRequestSchema(BaseModel):
    code: str = ""


class EditUpdateSchema(BaseModel):
    service: str | None = None
    date: str | None = None
    time: str | None = None
    month_delta: int = Field(default=0, ge=-120, le=120)
    pick_next_available: str | None = None


class FormViewSchema(BaseModel):
    appointment_for: str
    visited_before: bool
    identification_number: str
    comments: str
    communication_preference: str
    booker: ContactSchema
    patient: ContactSchema
    coupon_code: str
    coupon_applied: bool


class SessionViewSchema(BaseModel):
    session_id: str
    step: str
    authenticated: bool
    provider_id: str | None = None
    draft: dict[str, Any] = Field(default_factory=dict)
    service_name: str = ""
    services: list[str] = Field(default_factory=list)
    form: FormViewSchema
    errors: dict[str, str] = Field(default_factory=dict)
    booking_in_flight: bool = False
    payment_in_flight: bool = False
    price: float | None = None
    discount: float | None = None
    total: float | None = None
    coupon_applied: bool = False


class MountResponseSchema(BaseModel):
    action: str
    message: str | None = None
    session: SessionViewSchema


class StepResponseSchema(BaseModel):
    action: str
    step: str
    message: str | None = None
    errors: dict[str, str] = Field(default_factory=dict)
    exit_to: str | None = None
    session: SessionViewSchema


class SlotsResponseSchema(BaseModel):
    date: str
    slots: list[str]
    next_available_date: str | None = None
    next_available_slots: list[str] = Field(default_factory=list)


class CouponResponseSchema(BaseModel):
    applied: bool
    code: str
    message: str
    session: SessionViewSchema


class PaymentResponseSchema(BaseModel):
    action: str
    message: str | None = None
    authorization_url: str | None = None
    amount: float | None = None
    errors: dict[str, str] = Field(default_factory=dict)


class CalendarCellSchema(BaseModel):
    date: str
    day: int
    in_month: bool
    is_today: bool
    is_past: bool
    is_available: bool
    is_selected: bool
    selectable: bool


class SlotOptionSchema(BaseModel):
    time: str
    disabled: bool = False
    selected: bool = False


class EditModalSchema(BaseModel):
    services: list[str]
    selected_service: str
    selected_date: str
    selected_time: str
    year: int
    month: int
    calendar: list[CalendarCellSchema]
    slots: list[SlotOptionSchema]
    next_available_date: str | None = None
    next_available_slots: list[str] = Field(default_factory=list)


class PaymentCallbackSchema(BaseModel):
    redirect_to: str
