"""Route Modules: one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter
    - Routes never contain validation or state logic (delegate to core)

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
