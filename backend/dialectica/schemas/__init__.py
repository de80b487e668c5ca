"""Pydantic Schemas — validation at the LLM, API and session-file boundaries.

Invariants:
    - LLM output never reaches the core unvalidated
    - Domain types from core/ used for enum fields
"""
