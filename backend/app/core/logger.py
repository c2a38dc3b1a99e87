# app/core/logger.py
"""
Application logger.

All services log through ``logger`` (or ``logging.getLogger(__name__)``, which
inherits the same handler). Every record carries the request correlation id and
passes through a redaction filter so personal data never reaches log lines.
"""
from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar

from app.core.config import settings

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"(?<!\d)(?:\+91[\s-]?)?[6-9]\d{9}(?!\d)")
_BEARER_RE = re.compile(r"(?i)bearer\s+[A-Za-z0-9._\-]+")

_MAX_LOGGED_CHARS = 300


def redact(text: str) -> str:
    """Mask e-mail addresses, Indian mobile numbers and bearer tokens."""
    text = _EMAIL_RE.sub("[email]", text)
    text = _PHONE_RE.sub("[phone]", text)
    return _BEARER_RE.sub("Bearer [token]", text)


def sanitize_for_log(value: object) -> str:
    """
    Reduce an exception or arbitrary value to a short, redacted string that is
    safe to include in a log line.
    """
    if isinstance(value, BaseException):
        text = f"{type(value).__name__}: {value}"
    else:
        text = str(value)
    text = redact(" ".join(text.split()))
    if len(text) > _MAX_LOGGED_CHARS:
        return text[:_MAX_LOGGED_CHARS] + "..."
    return text


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: redact(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            else:
                record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        return True


def setup_logging() -> logging.Logger:
    root_logger = logging.getLogger("app")
    if root_logger.handlers:
        return root_logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
        )
    )
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    return root_logger


setup_logging()
logger = logging.getLogger("app.casedesk")
