"""Schema Registry: per-(type, subtype) payload schemas consulted by the Validator.

Invariants:
    - At most one payload schema per Discriminator; duplicates raise ConfigurationError
    - Lookups are read-only and never raise

Design Decisions:
    - SchemaProvider is a Protocol: callers may plug in any lookup service
    - SchemaRegistry is the bundled dict-backed implementation
"""

from collections.abc import Callable
from typing import Protocol, TypeVar

from pydantic import BaseModel

from msggate.core.domain_types import Discriminator, discriminator
from msggate.core.errors import ConfigurationError, ErrorContext

ModelT = TypeVar("ModelT", bound=type[BaseModel])


class SchemaProvider(Protocol):
    """Contract for the schema collaborator."""
    def schema_for(self, message_type: str, subtype: str) -> type[BaseModel] | None: ...


class SchemaRegistry:
    """Maps Discriminator -> payload model. Explicit registration, no discovery."""

    def __init__(self, schemas: dict[tuple[str, str], type[BaseModel]] | None = None):
        self._schemas: dict[Discriminator, type[BaseModel]] = {}
        for (message_type, subtype), model in (schemas or {}).items():
            self.add(message_type, subtype, model)

    def add(self, message_type: str, subtype: str, model: type[BaseModel]) -> None:
        key = discriminator(message_type, subtype)
        if key in self._schemas:
            raise ConfigurationError(
                f"Schema already registered for {key}: {self._schemas[key].__name__}",
                "DUPLICATE_SCHEMA",
                ErrorContext(message_type=message_type, subtype=subtype),
            )
        self._schemas[key] = model

    def schema(self, message_type: str, subtype: str) -> Callable[[ModelT], ModelT]:
        """Class decorator form of add()."""
        def decorator(model: ModelT) -> ModelT:
            self.add(message_type, subtype, model)
            return model
        return decorator

    def schema_for(self, message_type: str, subtype: str) -> type[BaseModel] | None:
        return self._schemas.get(discriminator(message_type, subtype))

    def __contains__(self, key: object) -> bool:
        return key in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
