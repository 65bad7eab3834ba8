"""Error Hierarchy: typed, categorized exceptions for every msggate failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - ValidationError and HandlerError are recoverable: one message dropped, loop continues
    - ConfigurationError is fatal at setup time and never raised while dispatching
    - to_report() produces the dict handed to logs and error sinks

Design Decisions:
    - Single hierarchy with MsgGateError base: error sinks accept one type
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and sink routing."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    HANDLER = "handler"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message_type: str | None = None
    subtype: str | None = None
    message_id: str | None = None
    handler_name: str | None = None
    location: str | None = None
    debug_info: dict[str, Any] | None = None


class MsgGateError(Exception):
    """Base exception for all msggate errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR)

    def to_report(self) -> dict:
        """Convert to the structured dict passed to logs and sinks."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "recoverable": self.recoverable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "message_type": self.context.message_type,
                    "subtype": self.context.subtype,
                    "message_id": self.context.message_id,
                    "handler_name": self.context.handler_name,
                    "location": self.context.location,
                },
            }
        }


# ─── Message Errors (recoverable) ────────────────────────────────

class ValidationError(MsgGateError):
    """Raw message did not satisfy its schema. The message is dropped."""
    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context,
        )


class HandlerError(MsgGateError):
    """A registered handler raised. Wraps the original exception as __cause__."""
    def __init__(
        self,
        handler_name: str,
        original: BaseException,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' failed: {type(original).__name__}: {original}",
            "HANDLER_ERROR", ErrorCategory.HANDLER,
            ErrorSeverity.ERROR, ctx,
        )
        self.original = original
        self.__cause__ = original


# ─── Setup Errors (fatal) ────────────────────────────────────────

class ConfigurationError(MsgGateError):
    """Invalid setup: duplicate registration or mutation of a frozen table."""
    def __init__(
        self,
        message: str,
        code: str = "CONFIGURATION_ERROR",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context,
        )
