"""Services Layer — LLM analysis requests, the orchestrator and auto-run.

Invariants:
    - Only the orchestrator mutates session state
    - Prompt and tool schema assembly live here, retries in infrastructure/
"""
