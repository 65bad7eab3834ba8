"""Proof of Validation: a nominal wrapper only the Validator can construct.

Invariants:
    - ValidatedMessage instances exist only if Validator accepted the raw message
    - Direct construction raises TypeError; instances are immutable
    - is_validated() checks the proof token, not just the class, so copies and
      __new__-built shells are rejected

Design Decisions:
    - Module-private proof token over a registry of issued ids: no global state grows
    - Read-only accessors only; payload without a schema is exposed as a MappingProxyType
"""

from types import MappingProxyType
from typing import Any, Generic, TypeGuard, TypeVar

from msggate.core.domain_types import Discriminator, MessageSubtype, MessageType
from msggate.schemas.envelope import MessageEnvelope

PayloadT = TypeVar("PayloadT")

_PROOF = object()


class ValidatedMessage(Generic[PayloadT]):
    """A raw message that passed schema validation. Handlers accept only this type."""

    __slots__ = ("_envelope", "_payload", "_raw", "_proof")

    def __init__(
        self,
        envelope: MessageEnvelope,
        payload: PayloadT,
        raw: object,
        *,
        _proof: object = None,
    ):
        if _proof is not _PROOF:
            raise TypeError(
                "ValidatedMessage can only be produced by Validator.validate() "
                "or Validator.assert_valid()"
            )
        object.__setattr__(self, "_envelope", envelope)
        object.__setattr__(self, "_payload", payload)
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_proof", _proof)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ValidatedMessage is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("ValidatedMessage is immutable")

    def __reduce__(self):
        raise TypeError("ValidatedMessage cannot be copied or pickled; re-validate the raw message")

    @property
    def envelope(self) -> MessageEnvelope:
        return self._envelope

    @property
    def payload(self) -> PayloadT:
        return self._payload

    @property
    def raw(self) -> object:
        return self._raw

    @property
    def message_type(self) -> MessageType:
        return MessageType(self._envelope.type)

    @property
    def subtype(self) -> MessageSubtype:
        return MessageSubtype(self._envelope.subtype)

    @property
    def discriminator(self) -> Discriminator:
        return self._envelope.discriminator

    @property
    def message_id(self) -> str | None:
        return self._envelope.id

    def __repr__(self) -> str:
        return (
            f"ValidatedMessage({self.discriminator}, id={self.message_id!r}, "
            f"payload={self._payload!r})"
        )


def _seal(envelope: MessageEnvelope, payload: Any, raw: object) -> ValidatedMessage:
    """Attach the proof token. Called only from Validator's success path."""
    if payload is None:
        payload = MappingProxyType(dict(envelope.payload))
    return ValidatedMessage(envelope, payload, raw, _proof=_PROOF)


def is_validated(value: object) -> TypeGuard[ValidatedMessage]:
    """True only for genuine ValidatedMessage instances carrying the proof token."""
    if not isinstance(value, ValidatedMessage):
        return False
    try:
        return object.__getattribute__(value, "_proof") is _PROOF
    except AttributeError:
        return False
