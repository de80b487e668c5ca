"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure knows nothing about reading phases or session state
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility)
"""
