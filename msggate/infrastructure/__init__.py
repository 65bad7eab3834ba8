"""Infrastructure Layer: logging setup and the default error sink.

Invariants:
    - Infrastructure never imports from services/
"""
