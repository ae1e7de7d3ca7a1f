"""
JSON log lines for catchhook.

Each line carries the correlation id of the request that produced it plus the
webhook fields bound for that request (webhook id, endpoint id, event id).
The ingestion handler binds them once with log_context(); services deeper in
the pipeline log plainly and still get them.
"""
import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Never mutated in place; every bind stores a fresh dict
log_fields_ctx: ContextVar[dict[str, str]] = ContextVar("log_fields", default={})

CONTEXT_FIELDS = ("webhook_id", "endpoint_id", "event_id", "user_id")
RECORD_FIELDS = CONTEXT_FIELDS + ("status_code", "body_kind", "body_bytes")

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpcore", "httpx")


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def set_correlation_id(cid: str) -> None:
    correlation_id_ctx.set(cid)


def generate_correlation_id() -> str:
    """UUID4 hex, 32 chars."""
    return uuid.uuid4().hex


def _merged_fields(fields: dict[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    merged = dict(log_fields_ctx.get())
    merged.update({key: str(value) for key, value in fields.items() if value is not None})
    return merged


def bind_log_fields(**fields: Any) -> None:
    """Add fields to the current context. log_context() undoes them on exit."""
    log_fields_ctx.set(_merged_fields(fields))


def current_log_fields() -> dict[str, str]:
    return dict(log_fields_ctx.get())


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach fields to every log line emitted inside the block."""
    token = log_fields_ctx.set(_merged_fields(fields))
    try:
        yield
    finally:
        log_fields_ctx.reset(token)


class StructuredJsonFormatter(logging.Formatter):
    """
    One JSON object per record:
    {"timestamp", "level", "correlation_id", "module", "message", <bound fields>, ...}

    Fields passed with extra= win over bound ones.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "correlation_id": get_correlation_id(),
            "module": record.name,
            "message": record.getMessage(),
        }
        entry.update(log_fields_ctx.get())

        for key in RECORD_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_structured_logging(log_level: str = "INFO") -> None:
    """Route the root logger to a single stdout handler writing JSON lines."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
