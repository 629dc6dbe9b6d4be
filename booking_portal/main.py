from fastapi import FastAPI

from booking_portal.api.v1.booking_sessions import router as booking_sessions_router
from booking_portal.core.config import settings
from booking_portal.core.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

app = FastAPI(title="Patient Booking Portal", version="1.0.0")

app.include_router(booking_sessions_router, prefix="/api/v1", tags=["booking-sessions"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
