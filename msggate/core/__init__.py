"""Core Layer: validation, proof tagging, routing and change filtering.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - No IO, no async, no logging side effects inside core functions

Design Decisions:
    - Functional core separated from the imperative shell (services/pipeline.py)
"""
