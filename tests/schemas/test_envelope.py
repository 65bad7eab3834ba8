"""Envelope Schema: the outer contract every socket message must satisfy.

Invariants:
    - type and subtype are required, non-empty, and not padded with whitespace
    - payload defaults to an empty object and must be a dict
    - StrictMessageEnvelope rejects unknown top-level keys; MessageEnvelope drops them
"""

import pytest
from pydantic import ValidationError

from msggate.schemas.envelope import MessageEnvelope, StrictMessageEnvelope


def test_minimal_envelope():
    env = MessageEnvelope(type="print", subtype="start")
    assert env.payload == {}
    assert env.id is None
    assert env.discriminator == ("print", "start")


def test_type_is_required():
    with pytest.raises(ValidationError):
        MessageEnvelope(subtype="start")


def test_padded_discriminator_is_rejected():
    with pytest.raises(ValidationError):
        MessageEnvelope(type=" print", subtype="start")


def test_negative_timestamp_is_rejected():
    with pytest.raises(ValidationError):
        MessageEnvelope(type="print", subtype="start", timestamp=-1)


def test_envelope_is_frozen():
    env = MessageEnvelope(type="print", subtype="start")
    with pytest.raises(ValidationError):
        env.type = "other"


def test_unknown_keys_dropped_by_default():
    env = MessageEnvelope.model_validate({"type": "a", "subtype": "b", "seq": 4})
    assert "seq" not in env.model_dump()


def test_strict_envelope_forbids_unknown_keys():
    with pytest.raises(ValidationError):
        StrictMessageEnvelope.model_validate({"type": "a", "subtype": "b", "seq": 4})
