"""Core Layer — pure domain logic, no network, no async.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - Chunking, axiom merging, graph deltas and snapshots are deterministic

Design Decisions:
    - Functional core separated from the orchestrating shell: everything here
      is testable without mocks
"""
