from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException

from booking_portal.api.v1.schemas import (
    CalendarCellSchema,
    ContactSchema,
    CouponRequestSchema,
    CouponResponseSchema,
    EditModalSchema,
    EditUpdateSchema,
    FormUpdateSchema,
    FormViewSchema,
    MountRequestSchema,
    MountResponseSchema,
    OAuthRequestSchema,
    PaymentCallbackSchema,
    PaymentResponseSchema,
    SelectionRequestSchema,
    SessionViewSchema,
    SlotOptionSchema,
    SlotsResponseSchema,
    StepResponseSchema,
)
from booking_portal.application.use_cases.booking_session import BookingSession, StepResult
from booking_portal.application.use_cases.edit_booking import EditBookingModal
from booking_portal.application.utils.calendar_dates import to_iso
from booking_portal.wiring.dependencies import BookingSessionRegistry, get_session_registry

router = APIRouter()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _get_session(registry: BookingSessionRegistry, session_id: str) -> BookingSession:
    session = registry.get(session_id)
    if session is None or not session.is_mounted:
        raise HTTPException(status_code=404, detail="Booking session not found")
    return session


def _optional_float(value):
    return float(value) if value is not None else None


def _session_view(session: BookingSession) -> SessionViewSchema:
    snapshot = session.snapshot()
    form = snapshot["form"]
    return SessionViewSchema(
        session_id=snapshot["session_id"],
        step=snapshot["step"],
        authenticated=snapshot["authenticated"],
        provider_id=snapshot["provider_id"],
        draft=snapshot["draft"],
        service_name=snapshot["service_name"],
        services=snapshot["services"],
        form=FormViewSchema(
            appointment_for=form.appointment_for.value,
            visited_before=form.visited_before,
            identification_number=form.identification_number,
            comments=form.comments,
            communication_preference=form.communication_preference,
            booker=ContactSchema(**asdict(form.booker)),
            patient=ContactSchema(**asdict(form.patient)),
            coupon_code=form.coupon_code,
            coupon_applied=form.coupon_applied,
        ),
        errors=snapshot["errors"],
        booking_in_flight=snapshot["booking_in_flight"],
        payment_in_flight=snapshot["payment_in_flight"],
        price=_optional_float(snapshot["price"]),
        discount=_optional_float(snapshot["discount"]),
        total=_optional_float(snapshot["total"]),
        coupon_applied=snapshot["coupon_applied"],
    )


def _step_response(session: BookingSession, result: StepResult) -> StepResponseSchema:
    if result.action == "conflict":
        raise HTTPException(status_code=409, detail=result.message)
    return StepResponseSchema(
        action=result.action,
        step=result.step.value,
        message=result.message,
        errors=result.errors,
        exit_to=result.exit_to,
        session=_session_view(session),
    )


def _edit_view(session: BookingSession, modal: EditBookingModal) -> EditModalSchema:
    upcoming = modal.next_available()
    return EditModalSchema(
        services=modal.service_names,
        selected_service=modal.selected_service,
        selected_date=to_iso(modal.selected_date),
        selected_time=modal.selected_time,
        year=modal.calendar_year,
        month=modal.calendar_month,
        calendar=[
            CalendarCellSchema(**asdict(cell), selectable=cell.selectable) for cell in modal.calendar()
        ],
        slots=[SlotOptionSchema(**asdict(option)) for option in modal.slots(session.now())],
        next_available_date=to_iso(upcoming) if upcoming else None,
        next_available_slots=modal.next_available_slots(),
    )


@router.post("/booking-sessions/{session_id}/mount", response_model=MountResponseSchema)
def mount_session(
    session_id: str,
    req: MountRequestSchema,
    authorization: str | None = Header(default=None),
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = registry.get_or_create(session_id)
    result = session.mount(
        provider_id=req.provider_id,
        navigation=req.navigation,
        auth_token=_bearer_token(authorization),
        entry_path=req.entry_path,
    )
    if result.action == "not_found":
        raise HTTPException(status_code=404, detail=result.message)
    if result.action == "failed":
        raise HTTPException(status_code=502, detail=result.message)
    return MountResponseSchema(action=result.action, message=result.message, session=_session_view(session))


@router.get("/booking-sessions/{session_id}", response_model=SessionViewSchema)
def get_session(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    return _session_view(_get_session(registry, session_id))


@router.delete("/booking-sessions/{session_id}", status_code=204)
def close_session(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = registry.discard(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Booking session not found")
    session.close()


@router.patch("/booking-sessions/{session_id}/selection", response_model=SessionViewSchema)
def update_selection(
    session_id: str,
    req: SelectionRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = _get_session(registry, session_id)
    try:
        if req.service is not None:
            session.select_service(req.service)
        if req.date is not None:
            session.select_date(req.date)
        if req.time is not None:
            session.select_time(req.time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.patch("/booking-sessions/{session_id}/form", response_model=SessionViewSchema)
def update_form(
    session_id: str,
    req: FormUpdateSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = _get_session(registry, session_id)
    session.update_form(req.model_dump(exclude_none=True))
    return _session_view(session)


@router.get("/booking-sessions/{session_id}/slots", response_model=SlotsResponseSchema)
def list_slots(session_id: str, date: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    try:
        listing = session.slot_listing(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SlotsResponseSchema(**asdict(listing))


@router.post("/booking-sessions/{session_id}/continue", response_model=StepResponseSchema)
def continue_step(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    return _step_response(session, session.continue_())


@router.post("/booking-sessions/{session_id}/back", response_model=StepResponseSchema)
def go_back(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    return _step_response(session, session.go_back())


@router.post("/booking-sessions/{session_id}/guest", response_model=StepResponseSchema)
def continue_as_guest(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    return _step_response(session, session.continue_as_guest())


@router.post("/booking-sessions/{session_id}/oauth", response_model=StepResponseSchema)
def complete_oauth(
    session_id: str,
    req: OAuthRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = _get_session(registry, session_id)
    return _step_response(session, session.complete_oauth(req.id_token))


@router.post("/booking-sessions/{session_id}/coupon", response_model=CouponResponseSchema)
def apply_coupon(
    session_id: str,
    req: CouponRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = _get_session(registry, session_id)
    result = session.apply_coupon(req.code)
    return CouponResponseSchema(**asdict(result), session=_session_view(session))


@router.delete("/booking-sessions/{session_id}/coupon", response_model=CouponResponseSchema)
def remove_coupon(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    result = session.remove_coupon()
    return CouponResponseSchema(**asdict(result), session=_session_view(session))


@router.post("/booking-sessions/{session_id}/payment", response_model=PaymentResponseSchema)
def confirm_and_pay(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    result = session.confirm_and_pay()
    return PaymentResponseSchema(
        action=result.action,
        message=result.message,
        authorization_url=result.authorization_url,
        amount=_optional_float(result.amount),
        errors=result.errors,
    )


@router.get("/booking-sessions/{session_id}/edit", response_model=EditModalSchema)
def open_edit_booking(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    modal = session.edit_modal or session.open_edit_booking()
    return _edit_view(session, modal)


@router.patch("/booking-sessions/{session_id}/edit", response_model=EditModalSchema)
def update_edit_booking(
    session_id: str,
    req: EditUpdateSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    session = _get_session(registry, session_id)
    modal = session.edit_modal or session.open_edit_booking()

    if req.month_delta:
        try:
            modal.shift_months(req.month_delta)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if req.service is not None and not modal.select_service(req.service):
        raise HTTPException(status_code=400, detail="Unknown service")
    if req.date is not None and not modal.select_date(req.date):
        raise HTTPException(status_code=400, detail="This date is not available")
    if req.time is not None and not modal.select_time(req.time, session.now()):
        raise HTTPException(status_code=400, detail="This time is not available")
    if req.pick_next_available is not None and not modal.pick_next_available(req.pick_next_available):
        raise HTTPException(status_code=400, detail="This time is not available")
    return _edit_view(session, modal)


@router.post("/booking-sessions/{session_id}/edit/commit", response_model=SessionViewSchema)
def commit_edit_booking(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    try:
        session.commit_edit_booking()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.get("/booking-sessions/{session_id}/payment-callback", response_model=PaymentCallbackSchema)
def payment_callback(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    session = _get_session(registry, session_id)
    return PaymentCallbackSchema(redirect_to=session.payment_callback_target())
