"""
Application logging for PitchGenie.

Records go to stdout under the "pitchgenie" logger. Production emits one
JSON object per line; other environments get a readable single line.
Every record is stamped with the request id of the HTTP request it was
emitted from, so a generation or export can be traced end to end.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

LOGGER_NAME = "pitchgenie"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("pitchgenie_request_id", default=None)

_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

# Never written to logs even when passed through `extra`
_REDACTED_KEYS = frozenset({"password", "token", "authorization", "api_key", "secret", "stripe-signature"})

MAX_FIELD_LENGTH = 500

# (upper bound in ms, label); the last label catches everything slower
_LATENCY_BUCKETS = ((100, "<100ms"), (1000, "100-1000ms"), (5000, "1-5s"), (30000, "5-30s"))


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return default if rid is None else rid


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    """Coarse latency label; generations routinely take tens of seconds."""
    if latency_ms is None:
        return "unknown"
    for upper, label in _LATENCY_BUCKETS:
        if latency_ms < upper:
            return label
    return ">=30s"


def _clip(value: Any) -> Any:
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    text = str(value)
    if len(text) > MAX_FIELD_LENGTH:
        return f"{text[:MAX_FIELD_LENGTH]}...<truncated>"
    return text


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS or key == "request_id" or value is None:
            continue
        fields[key] = "[redacted]" if key.lower() in _REDACTED_KEYS else value
    return fields


def _utc(record: logging.LogRecord) -> str:
    stamp = datetime.fromtimestamp(record.created, timezone.utc)
    return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": _utc(record),
            "level": record.levelname.lower(),
            "event": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            **_record_fields(record),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        head = f"{_utc(record)} {record.levelname:<7} {record.getMessage()}"
        rid = getattr(record, "request_id", None)
        if rid:
            head += f" rid={rid}"
        tail = " ".join(f"{key}={value}" for key, value in _record_fields(record).items())
        text = f"{head} {tail}" if tail else head
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def configure_logging(env: str = "development") -> logging.Logger:
    """Install the stdout handler on the app logger. Safe to call repeatedly."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())
    logger.handlers = [handler]
    logger.propagate = True

    # uvicorn's access log duplicates request.complete
    logging.getLogger("uvicorn.access").propagate = False
    return logger


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str],
    user_id: Optional[str] = None,
    document_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> None:
    """Emit one structured event. Extra values are clipped to MAX_FIELD_LENGTH."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    fields: Dict[str, Any] = {
        "request_id": request_id or get_request_id(),
        "user_id": user_id,
        "document_id": document_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    for key, value in (extra or {}).items():
        fields[key] = _clip(value)

    logger.log(logging.getLevelName(level.upper()), msg, extra=fields)
