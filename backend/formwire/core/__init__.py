"""Core Layer: pure state and validation logic, no IO, no async.

Invariants:
    - No module in core/ imports from api/, schemas/ or infrastructure/
    - Session storage reaches the core as an injected MutableMapping

Design Decisions:
    - Functional core separated from the FastAPI shell; the shell loads the
      session, the core mutates it, the session middleware writes it back
"""
