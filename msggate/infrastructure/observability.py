"""Structured Logging: JSON formatter, setup, and the default error sink.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (message_type, subtype, handler_name, error_code) surfaced when present
    - log_error_sink never raises

Design Decisions:
    - JSONFormatter on stdlib logging: zero extra dependencies for host applications
    - setup_logging is opt-in: a library never configures the root logger on import
"""

import json
import logging
from datetime import datetime, timezone

from msggate.config import get_settings
from msggate.core.errors import MsgGateError

logger = logging.getLogger("msggate.errors")

_EXTRA_FIELDS = (
    "message_type", "subtype", "message_id", "handler_name",
    "error_code", "outcome",
)

_installed_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Configure root logging. Unset arguments come from Settings.

    Calling it again replaces the previously installed handler.
    """
    global _installed_handler
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    if _installed_handler is not None:
        logging.root.removeHandler(_installed_handler)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _installed_handler = handler
    return handler


def log_error_sink(error: MsgGateError) -> None:
    """Default error sink: log the error with its context as structured extras."""
    ctx = error.context
    level = logging.WARNING if error.severity.value in ("info", "warning") else logging.ERROR
    cause = error.__cause__
    exc_info = (type(cause), cause, cause.__traceback__) if cause is not None else None
    logger.log(
        level,
        f"{error.code}: {error.message}",
        exc_info=exc_info,
        extra={
            "error_code": error.code,
            "message_type": ctx.message_type,
            "subtype": ctx.subtype,
            "message_id": ctx.message_id,
            "handler_name": ctx.handler_name,
        },
    )
