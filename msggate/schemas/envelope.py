"""Envelope Schema: the outer shape every inbound socket message must have.

Invariants:
    - type and subtype are non-empty strings; together they form the Discriminator
    - payload is always a JSON object (dict), never a list or scalar
    - The envelope never interprets payload contents; that is the payload schema's job

Design Decisions:
    - Two envelope classes instead of runtime model_config mutation:
      StrictMessageEnvelope forbids unknown top-level keys, MessageEnvelope ignores them
"""

from typing import Any, NotRequired, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from msggate.core.domain_types import Discriminator, discriminator


class RawEnvelope(TypedDict):
    """Static shape of a raw mapping that passed the predicate check."""
    type: str
    subtype: str
    payload: NotRequired[dict[str, Any]]
    id: NotRequired[str | None]
    timestamp: NotRequired[float | None]


class MessageEnvelope(BaseModel):
    """Authoritative envelope for one inbound message."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = Field(..., min_length=1)
    subtype: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    id: str | None = None
    timestamp: float | None = Field(None, ge=0.0)

    @field_validator("type", "subtype")
    @classmethod
    def no_surrounding_whitespace(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError("must not have leading or trailing whitespace")
        return v

    @property
    def discriminator(self) -> Discriminator:
        return discriminator(self.type, self.subtype)


class StrictMessageEnvelope(MessageEnvelope):
    """Envelope variant that rejects unknown top-level keys."""

    model_config = ConfigDict(extra="forbid", frozen=True)
