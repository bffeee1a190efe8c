"""Infrastructure Layer — database access, transactions and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All SQLAlchemy failures mapped to pairqueue errors before leaving this layer

Design Decisions:
    - Resilient wrappers over raw sessions: retry and error mapping live in one place
"""
