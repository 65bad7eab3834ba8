"""Domain Types: rich types that replace bare strings in routing code.

Invariants:
    - MessageType and MessageSubtype wrap str, never compare raw strings in routing logic
    - Discriminator is always the (type, subtype) pair, in that order
    - All outcomes encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: outcomes serialize to JSON logs without custom encoders
"""

from enum import Enum
from typing import NamedTuple, NewType


# ─── Identity Types ──────────────────────────────────────────────

MessageType = NewType("MessageType", str)
MessageSubtype = NewType("MessageSubtype", str)


class Discriminator(NamedTuple):
    """The (type, subtype) pair that selects a schema and a handler."""
    message_type: MessageType
    subtype: MessageSubtype

    def __str__(self) -> str:
        return f"{self.message_type}/{self.subtype}"


def discriminator(message_type: str, subtype: str) -> Discriminator:
    """Build a Discriminator from plain strings."""
    return Discriminator(MessageType(message_type), MessageSubtype(subtype))


# ─── Enums ───────────────────────────────────────────────────────

class DispatchStatus(str, Enum):
    """Router outcomes. UNHANDLED is a normal result, not an error."""
    HANDLED = "handled"
    UNHANDLED = "unhandled"


class PipelineOutcome(str, Enum):
    """What happened to one raw message after on_message returned."""
    HANDLED = "handled"
    SCHEDULED = "scheduled"
    UNHANDLED = "unhandled"
    REJECTED = "rejected"
    FAILED = "failed"
