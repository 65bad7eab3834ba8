"""Pydantic Schemas: the inbound envelope and the per-type payload registry.

Invariants:
    - Schemas validate at the system boundary (raw socket messages)
    - Payload schemas are supplied by callers, never hard-coded here
"""
