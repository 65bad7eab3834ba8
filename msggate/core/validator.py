"""Schema Validator: the single gate between raw socket bytes and trusted messages.

Invariants:
    - validate(), is_valid() and assert_valid() all call _check(), so they never diverge
    - Acceptance is all-or-nothing: envelope AND payload schema must pass
    - Failures describe the FIRST violation only, as "<location>: <reason>"
    - validate() and is_valid() never raise for bad input; assert_valid() raises ValidationError
    - A crashing schema collaborator is a SCHEMA_FAILURE rejection, never an escaping exception
    - No logging, no IO: reporting is the caller's job

Design Decisions:
    - Result object over exceptions on the hot path: the pipeline branches on .ok
    - Overloaded is_valid(): mapping input narrows to RawEnvelope, text/bytes input is a plain bool
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeGuard, overload

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from msggate.config import Settings, get_settings
from msggate.core.errors import ErrorContext, ValidationError
from msggate.core.validated import ValidatedMessage, _seal
from msggate.schemas.envelope import MessageEnvelope, RawEnvelope, StrictMessageEnvelope
from msggate.schemas.registry import SchemaProvider

RawMessage = bytes | bytearray | str | Mapping[str, Any]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation: exactly one of message / error is set."""
    message: ValidatedMessage | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ValidatedMessage:
        """Return the validated message or raise the carried ValidationError."""
        if self.error is not None:
            raise self.error
        return self.message


def _first_error(
    exc: PydanticValidationError, prefix: str = "",
) -> tuple[str, str, str]:
    """Return (location, description, pydantic error type) for the first violation."""
    err = exc.errors(include_url=False)[0]
    loc = ".".join(str(part) for part in err["loc"])
    location = f"{prefix}.{loc}" if prefix and loc else (loc or prefix or "<root>")
    return location, f"{location}: {err['msg']}", err["type"]


def _rejected(message: str, code: str, context: ErrorContext) -> ValidationResult:
    return ValidationResult(error=ValidationError(message, code, context))


class Validator:
    """Checks raw messages against the envelope and the per-type payload schema."""

    def __init__(
        self,
        schemas: SchemaProvider | None = None,
        settings: Settings | None = None,
    ):
        self._schemas = schemas
        self._settings = settings or get_settings()
        self._envelope_model: type[MessageEnvelope] = (
            StrictMessageEnvelope
            if self._settings.forbid_extra_envelope_fields
            else MessageEnvelope
        )

    def validate(self, raw: RawMessage) -> ValidationResult:
        """Validate raw. Never raises for malformed input."""
        return self._check(raw)

    @overload
    def is_valid(self, raw: Mapping[str, Any]) -> TypeGuard[RawEnvelope]: ...

    @overload
    def is_valid(self, raw: bytes | bytearray | str) -> bool: ...

    def is_valid(self, raw):
        """Predicate mode: True when raw would be accepted. Never raises."""
        return self._check(raw).ok

    def assert_valid(self, raw: RawMessage) -> ValidatedMessage:
        """Assertion mode: return the tagged message or raise ValidationError."""
        return self._check(raw).unwrap()

    def _check(self, raw: object) -> ValidationResult:
        context = ErrorContext()

        if isinstance(raw, (bytes, bytearray, str)):
            limit = self._settings.max_message_bytes
            size = len(raw.encode("utf-8", "surrogatepass")) if isinstance(raw, str) else len(raw)
            if limit and size > limit:
                context.location = "<root>"
                context.debug_info = {"size": size, "limit": limit}
                return _rejected(
                    f"<root>: message is {size} bytes, limit is {limit}",
                    "MESSAGE_TOO_LARGE", context,
                )

        try:
            if isinstance(raw, (bytes, bytearray, str)):
                envelope = self._envelope_model.model_validate_json(raw)
            elif isinstance(raw, Mapping):
                envelope = self._envelope_model.model_validate(dict(raw))
            else:
                context.location = "<root>"
                return _rejected(
                    f"<root>: expected bytes, str or mapping, got {type(raw).__name__}",
                    "VALIDATION_ERROR", context,
                )
        except PydanticValidationError as exc:
            location, description, err_type = _first_error(exc)
            context.location = location
            context.debug_info = {"error_count": exc.error_count()}
            if isinstance(raw, Mapping):
                context.message_type = _loose_str(raw.get("type"))
                context.subtype = _loose_str(raw.get("subtype"))
            code = "MALFORMED_JSON" if err_type == "json_invalid" else "VALIDATION_ERROR"
            return _rejected(description, code, context)
        except UnicodeError as exc:
            context.location = "<root>"
            return _rejected(f"<root>: invalid text encoding: {exc}", "MALFORMED_JSON", context)

        context.message_type = envelope.type
        context.subtype = envelope.subtype
        context.message_id = envelope.id

        try:
            model = (
                self._schemas.schema_for(envelope.type, envelope.subtype)
                if self._schemas is not None
                else None
            )
        except Exception as exc:
            return _schema_failure(exc, context)
        if model is None:
            if self._settings.require_registered_schema:
                context.location = "type"
                return _rejected(
                    f"type: no schema registered for {envelope.discriminator}",
                    "SCHEMA_NOT_REGISTERED", context,
                )
            return ValidationResult(message=_seal(envelope, None, raw))

        try:
            payload: BaseModel = model.model_validate(envelope.payload)
        except PydanticValidationError as exc:
            location, description, _ = _first_error(exc, prefix="payload")
            context.location = location
            context.debug_info = {"error_count": exc.error_count(), "schema": model.__name__}
            return _rejected(description, "VALIDATION_ERROR", context)
        except Exception as exc:
            return _schema_failure(exc, context)

        return ValidationResult(message=_seal(envelope, payload, raw))


def _schema_failure(exc: Exception, context: ErrorContext) -> ValidationResult:
    """A crashing schema collaborator rejects the message instead of escaping."""
    context.location = context.location or "<root>"
    error = ValidationError(
        f"<root>: schema check failed: {type(exc).__name__}: {exc}",
        "SCHEMA_FAILURE", context,
    )
    error.__cause__ = exc
    return ValidationResult(error=error)


def _loose_str(value: object) -> str | None:
    return value if isinstance(value, str) else None
