"""Services Layer — imperative shell around the core.

Invariants:
    - Services own transactions (unit of work) and authorization checks
    - Planning and validation rules come from core/

Design Decisions:
    - Services receive their IO collaborators (sessions, units of work) from callers
"""
