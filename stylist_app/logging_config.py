"""JSON logging for the stylist with per-request correlation ids.

Every line carries the correlation id of the suggestion request that caused it
and, inside :func:`operation_context`, the operation name. Owner ids, image
references, prompts and outfit names never reach the output.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Optional

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)
OPERATION: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("operation", default=None)

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
}
_REDACT_KEYS = frozenset(
    {
        "user_id",
        "owner_id",
        "image_url",
        "image_path",
        "item_image_urls",
        "cover_image_url",
        "description",
        "prompt",
        "outfit_name",
    }
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+")
_STORAGE_REF = re.compile(r"^(https?|gs|s3|file)://", re.IGNORECASE)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", message),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        operation = getattr(record, "operation", None) or OPERATION.get()
        if operation:
            payload["operation"] = operation
        extras = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}
        for key, value in redact_for_log(extras).items():
            payload.setdefault(key, value)
        return json.dumps(payload)


def _is_json_handler(handler: logging.Handler) -> bool:
    return isinstance(handler.formatter, JsonFormatter)


def configure_logging(level: int | str | None = None) -> None:
    """Install a single JSON stderr handler on the root logger.

    Handlers installed by anything else (test capture, hosting runtimes) are
    left in place; only a previous JSON handler is replaced.
    """

    root = logging.getLogger()
    for handler in [h for h in root.handlers if _is_json_handler(h)]:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO"))


def _redact_string(value: str) -> str:
    if _EMAIL.search(value):
        return _EMAIL.sub("[redacted-email]", value)
    if _STORAGE_REF.match(value):
        return "[redacted-url]"
    return value


def redact_for_log(payload: Any) -> Any:
    """Return a JSON-safe copy of ``payload`` with owner data masked.

    Values under owner, image, prompt and outfit-name keys are replaced
    wholesale; other strings lose embedded emails and storage URLs.
    """

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _redact_string(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in _REDACT_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(item) for item in payload]
    return str(payload)


def get_logger(name: str) -> logging.Logger:
    if not any(_is_json_handler(handler) for handler in logging.getLogger().handlers):
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, else keep the current one, else mint one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Scope a correlation id; the previous one is restored on exit."""

    token = CORRELATION_ID.set(correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` attached as redacted record attributes."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={**redact_for_log(fields), "event": event, "correlation_id": correlation_id},
    )


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Run one suggestion operation under its own correlation id and name."""

    with correlation_context(correlation_id) as scoped_id:
        token = OPERATION.set(name)
        try:
            log_event(logging.getLogger(__name__), logging.DEBUG, "operation_started", operation=name, **fields)
            yield scoped_id
        finally:
            OPERATION.reset(token)


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
