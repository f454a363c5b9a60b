"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, db/ or models/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: task ordering is planned here
      and applied by services/task_ordering_engine.py
"""
