"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Every workspace-scoped handler calls authorize() before reading or writing

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
