from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"

    PORTAL_API_BASE_URL: str | None = None
    PORTAL_API_TIMEOUT_SECONDS: float = 10.0
    PORTAL_TIMEZONE: str = "Africa/Lagos"

    STORE_PROVIDER: str = "json"
    DRAFT_DATA_DIR: str = "./data/sessions"
    DRAFT_STORAGE_KEY: str = "bookingDraft"

    SLOT_STEP_MINUTES: int = 60
    SLOT_DURATION_MINUTES: int = 30
    NEXT_AVAILABLE_HORIZON_DAYS: int = 30

    MIN_PATIENT_AGE_YEARS: int = 2
    PHONE_COUNTRY_CODE: str = "234"

    COUPON_CODE: str = "IJKZYB"
    COUPON_DISCOUNT_PERCENT: int = 25

    PAYMENT_CALLBACK_URL: str | None = None

    SESSION_IDLE_TTL_SECONDS: int = 1800
    MAX_LIVE_SESSIONS: int = 1000

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


settings = Settings()
