"""Dispatch Router: explicit routing from (type, subtype) to one handler.

Invariants:
    - Every Discriminator -> handler mapping is registered explicitly, no auto-discovery
    - Duplicate registration raises ConfigurationError; the first handler stays in effect
    - Unknown pairs return DispatchOutcome(UNHANDLED) and never raise
    - dispatch() invokes exactly one handler and does NOT catch handler exceptions
    - After freeze() the table is read-only

Design Decisions:
    - Explicit dict over getattr: every mapping visible in one place
    - Handler errors propagate to the pipeline, which owns error containment
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeVar

from msggate.core.domain_types import Discriminator, DispatchStatus, discriminator
from msggate.core.errors import ConfigurationError, ErrorContext
from msggate.core.validated import ValidatedMessage, is_validated

Handler = Callable[[ValidatedMessage], Any]
HandlerT = TypeVar("HandlerT", bound=Handler)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of routing one validated message."""
    status: DispatchStatus
    discriminator: Discriminator
    handler_name: str | None = None
    result: Any = None

    @property
    def handled(self) -> bool:
        return self.status is DispatchStatus.HANDLED


def handler_name(handler: Callable) -> str:
    """Best-effort readable name for logs and error reports."""
    name = getattr(handler, "name", None)
    if isinstance(name, str):
        return name
    return getattr(handler, "__qualname__", None) or type(handler).__name__


class DispatchRouter:
    """Routes Discriminator -> handler. Built at setup time, read-only afterwards."""

    def __init__(self):
        self._handlers: dict[Discriminator, Handler] = {}
        self._names: dict[Discriminator, str] = {}
        self._frozen = False

    def register(
        self,
        message_type: str,
        subtype: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> None:
        key = discriminator(message_type, subtype)
        context = ErrorContext(message_type=message_type, subtype=subtype)
        if self._frozen:
            raise ConfigurationError(
                f"Cannot register {key}: dispatch table is frozen",
                "ROUTER_FROZEN", context,
            )
        if key in self._handlers:
            context.handler_name = self._names[key]
            raise ConfigurationError(
                f"Handler already registered for {key}: {self._names[key]}",
                "DUPLICATE_HANDLER", context,
            )
        self._handlers[key] = handler
        self._names[key] = name or handler_name(handler)

    def route(self, message_type: str, subtype: str) -> Callable[[HandlerT], HandlerT]:
        """Decorator form of register()."""
        def decorator(handler: HandlerT) -> HandlerT:
            self.register(message_type, subtype, handler)
            return handler
        return decorator

    def freeze(self) -> Mapping[Discriminator, Handler]:
        """Make the table immutable and return a read-only view of it."""
        self._frozen = True
        return self.handlers

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def handlers(self) -> Mapping[Discriminator, Handler]:
        return MappingProxyType(self._handlers)

    def name_for(self, key: Discriminator) -> str | None:
        return self._names.get(key)

    def dispatch(self, message: ValidatedMessage) -> DispatchOutcome:
        """Invoke the handler registered for message.discriminator."""
        if not is_validated(message):
            raise TypeError(
                f"dispatch() requires a ValidatedMessage, got {type(message).__name__}"
            )
        key = message.discriminator
        handler = self._handlers.get(key)
        if handler is None:
            return DispatchOutcome(DispatchStatus.UNHANDLED, key)
        result = handler(message)
        return DispatchOutcome(DispatchStatus.HANDLED, key, self._names[key], result)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
