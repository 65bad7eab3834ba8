"""Services Layer: the pipeline controller driven by the transport.

Invariants:
    - Error containment lives here and only here
"""
