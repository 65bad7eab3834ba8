"""Domain Types: verifies identity types, the Discriminator pair and outcome enums.

Tests:
    - NewType wrappers exist and are callable
    - Discriminator compares equal to a plain (type, subtype) tuple
    - Enums have expected members and serialize to string
"""

from msggate.core.domain_types import (
    Discriminator, DispatchStatus, MessageSubtype, MessageType,
    PipelineOutcome, discriminator,
)


def test_identity_types_wrap_str():
    assert MessageType("print") == "print"
    assert MessageSubtype("start") == "start"


def test_discriminator_matches_plain_tuple():
    key = discriminator("print", "start")
    assert key == ("print", "start")
    assert hash(key) == hash(("print", "start"))
    assert key.message_type == "print"
    assert key.subtype == "start"


def test_discriminator_str_is_slash_joined():
    assert str(Discriminator(MessageType("print"), MessageSubtype("start"))) == "print/start"


def test_dispatch_status_has_two_states():
    assert set(DispatchStatus) == {DispatchStatus.HANDLED, DispatchStatus.UNHANDLED}


def test_pipeline_outcome_values():
    assert {o.value for o in PipelineOutcome} == {
        "handled", "scheduled", "unhandled", "rejected", "failed",
    }
