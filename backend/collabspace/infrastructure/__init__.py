"""Infrastructure Layer — database access and cross-cutting concerns.

Invariants:
    - Driver exceptions never escape: mapped to core/errors.py types
    - Repositories implement the Protocols in core/repository_protocols.py

Design Decisions:
    - Infrastructure depends on core types, never the other way round
"""
