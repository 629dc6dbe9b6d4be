from functools import lru_cache
import logging
import threading
import time
from zoneinfo import ZoneInfo

from booking_portal.core.config import settings
from booking_portal.application.ports.appointments import AppointmentPort
from booking_portal.application.ports.oauth import OAuthPort
from booking_portal.application.ports.payments import PaymentPort
from booking_portal.application.ports.profile import ProfilePort
from booking_portal.application.ports.provider_catalog import ProviderCatalogPort
from booking_portal.application.ports.session_storage import SessionStoragePort
from booking_portal.application.use_cases.booking_draft_store import BookingDraftStore
from booking_portal.application.use_cases.booking_session import BookingSession
from booking_portal.application.utils.pricing import CouponRule
from booking_portal.infrastructure.portal.api_client import PortalApiClient
from booking_portal.infrastructure.portal.mock_portal import (
    MockAppointments,
    MockOAuth,
    MockPayments,
    MockProfileDirectory,
    MockProviderCatalog,
)
from booking_portal.infrastructure.portal.portal_appointments import PortalAppointments
from booking_portal.infrastructure.portal.portal_checkout import PortalOAuth, PortalPayments
from booking_portal.infrastructure.portal.portal_directory import PortalProfileDirectory, PortalProviderCatalog
from booking_portal.infrastructure.store.json_store import JsonSessionStorage
from booking_portal.infrastructure.store.memory_store import MemorySessionStorage


_session_storage: SessionStoragePort | None = None


def _use_mocks() -> bool:
    return not settings.PORTAL_API_BASE_URL or settings.ENV.lower() in {"dev", "local"}


def get_session_storage() -> SessionStoragePort:
    global _session_storage
    if _session_storage is None:
        if settings.STORE_PROVIDER.lower() == "memory":
            _session_storage = MemorySessionStorage()
        else:
            _session_storage = JsonSessionStorage(data_dir=settings.DRAFT_DATA_DIR)
    return _session_storage


@lru_cache
def get_portal_client() -> PortalApiClient:
    if not settings.PORTAL_API_BASE_URL:
        raise ValueError("PORTAL_API_BASE_URL is required outside dev/local")
    return PortalApiClient(base_url=settings.PORTAL_API_BASE_URL, timeout=settings.PORTAL_API_TIMEOUT_SECONDS)


@lru_cache
def get_provider_catalog() -> ProviderCatalogPort:
    if _use_mocks():
        return MockProviderCatalog()
    return PortalProviderCatalog(get_portal_client())


@lru_cache
def get_profile_directory() -> ProfilePort:
    if _use_mocks():
        return MockProfileDirectory()
    return PortalProfileDirectory(get_portal_client())


@lru_cache
def get_appointments() -> AppointmentPort:
    if _use_mocks():
        return MockAppointments()
    return PortalAppointments(get_portal_client())


@lru_cache
def get_payments() -> PaymentPort:
    if _use_mocks():
        return MockPayments()
    return PortalPayments(get_portal_client(), callback_url=settings.PAYMENT_CALLBACK_URL)


@lru_cache
def get_oauth() -> OAuthPort:
    if _use_mocks():
        return MockOAuth()
    return PortalOAuth(get_portal_client())


def build_booking_session(session_id: str) -> BookingSession:
    draft_store = BookingDraftStore(
        storage=get_session_storage(),
        session_id=session_id,
        key=settings.DRAFT_STORAGE_KEY,
    )
    return BookingSession(
        session_id=session_id,
        provider_catalog=get_provider_catalog(),
        profiles=get_profile_directory(),
        appointments=get_appointments(),
        payments=get_payments(),
        oauth=get_oauth(),
        draft_store=draft_store,
        timezone=ZoneInfo(settings.PORTAL_TIMEZONE),
        coupon_rule=CouponRule(settings.COUPON_CODE, settings.COUPON_DISCOUNT_PERCENT),
        slot_step_minutes=settings.SLOT_STEP_MINUTES,
        slot_duration_minutes=settings.SLOT_DURATION_MINUTES,
        horizon_days=settings.NEXT_AVAILABLE_HORIZON_DAYS,
        min_patient_age_years=settings.MIN_PATIENT_AGE_YEARS,
        phone_country_code=settings.PHONE_COUNTRY_CODE,
    )


class BookingSessionRegistry:
    """
    Live booking sessions keyed by browser session id.

    Sessions idle longer than `idle_ttl_seconds` are closed and dropped, and
    the least recently used one goes when `max_sessions` is reached. Their
    drafts stay in storage, so the next mount picks up where they left off.
    """

    def __init__(
        self,
        factory=build_booking_session,
        idle_ttl_seconds: float = settings.SESSION_IDLE_TTL_SECONDS,
        max_sessions: int = settings.MAX_LIVE_SESSIONS,
        clock=time.monotonic,
    ) -> None:
        self._factory = factory
        self._idle_ttl_seconds = idle_ttl_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        self._sessions: dict[str, BookingSession] = {}
        self._last_seen: dict[str, float] = {}  # least recently used first
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _touch_unsafe(self, session_id: str, now: float) -> None:
        self._last_seen.pop(session_id, None)
        self._last_seen[session_id] = now

    def _evict_unsafe(self, session_id: str, reason: str) -> None:
        session = self._sessions.pop(session_id)
        self._last_seen.pop(session_id, None)
        session.close()
        self._logger.info("Booking session evicted", extra={"session_id": session_id, "reason": reason})

    def _evict_expired_unsafe(self, now: float) -> int:
        expired = [sid for sid, seen in self._last_seen.items() if now - seen >= self._idle_ttl_seconds]
        for session_id in expired:
            self._evict_unsafe(session_id, "idle")
        return len(expired)

    def get_or_create(self, session_id: str) -> BookingSession:
        with self._lock:
            now = self._clock()
            self._evict_expired_unsafe(now)
            session = self._sessions.get(session_id)
            if session is None:
                while self._sessions and len(self._sessions) >= self._max_sessions:
                    self._evict_unsafe(next(iter(self._last_seen)), "capacity")
                session = self._factory(session_id)
                self._sessions[session_id] = session
                self._logger.info("Booking session created", extra={"session_id": session_id})
            self._touch_unsafe(session_id, now)
            return session

    def get(self, session_id: str) -> BookingSession | None:
        with self._lock:
            now = self._clock()
            self._evict_expired_unsafe(now)
            session = self._sessions.get(session_id)
            if session is not None:
                self._touch_unsafe(session_id, now)
            return session

    def discard(self, session_id: str) -> BookingSession | None:
        with self._lock:
            self._last_seen.pop(session_id, None)
            return self._sessions.pop(session_id, None)

    def evict_expired(self) -> int:
        with self._lock:
            return self._evict_expired_unsafe(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

_registry: BookingSessionRegistry | None = None


def get_session_registry() -> BookingSessionRegistry:
    global _registry
    if _registry is None:
        _registry = BookingSessionRegistry()
    return _registry
