import json
import logging
import sys

# Booking context passed through `extra=` by the use cases and adapters
CONTEXT_KEYS = ("session_id", "step", "provider_id", "appointment_id", "action", "reason", "error")


def _context(record: logging.LogRecord) -> dict[str, object]:
    values = {}
    for key in CONTEXT_KEYS:
        value = getattr(record, key, None)
        if value not in (None, ""):
            values[key] = value
    return values


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = " ".join(f"{key}={value}" for key, value in _context(record).items())
        if extras:
            return f"{base} | {extras}"
        return base


class JSONFormatter(logging.Formatter):
    """One JSON object per line, booking context as top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update({key: str(value) for key, value in _context(record).items()})
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(level: str = "INFO", log_format: str = "text") -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, root.level))
    return handler
