"""Prompt Formatting — pure functions building the user message for each phase.

Invariants:
    - STALE axioms never appear in a prompt
    - Global prompt carries the whole document; iterative carries one chunk
      framed by the global concepts and the previous chunk's concepts/patterns;
      consolidation carries no document text
    - Output is deterministic for identical inputs
"""

import json
from collections.abc import Iterable

from dialectica.core.axiom_store import Axiom
from dialectica.core.domain_types import AnalysisPhase
from dialectica.schemas.analysis import Analysis


def format_axioms(axioms: Iterable[Axiom]) -> str:
    """One line per active axiom: id, status, premises => conclusion."""
    axioms = list(axioms)
    if not axioms:
        return "No axioms loaded yet."
    active = [a for a in axioms if not a.is_stale]
    if not active:
        return "No active axioms."
    return "\n".join(
        f"- ID: {a.id} | STATUS: {a.status.value} | "
        f"LOGIC: [{', '.join(a.premises)}] => {a.conclusion}"
        for a in active
    )


def _global_concepts(global_context: Analysis | None) -> str:
    concepts = global_context.key_concepts if global_context else []
    return json.dumps(concepts, indent=2, ensure_ascii=False)


def _previous_chunk_block(previous: Analysis) -> str:
    patterns = ", ".join(p.pattern for p in previous.dialectical_patterns)
    return (
        "Previous Chunk Analysis (Immediate Context):\n"
        f"- Recent Concepts: {', '.join(previous.key_concepts)}\n"
        f"- Recent Patterns: {patterns}\n\n"
    )


def build_user_prompt(
    phase: AnalysisPhase,
    text: str,
    axioms: Iterable[Axiom],
    *,
    global_context: Analysis | None = None,
    previous_context: Analysis | None = None,
    chunk_label: str | None = None,
) -> str:
    """Assemble the user message for one analysis request."""
    prompt = f"Current Active Axioms (The Parts):\n{format_axioms(axioms)}\n\n"

    if phase == AnalysisPhase.CONSOLIDATION:
        prompt += (
            "Current Global Analysis (The Whole):\n"
            f"{_global_concepts(global_context)}\n\n"
            "INSTRUCTION: Perform HERMENEUTIC REFLECTION. Use the Axioms (Parts) "
            "to Refine the Global Context (Whole). Aggressively prune redundant axioms."
        )
    elif phase == AnalysisPhase.ITERATIVE:
        prompt += (
            "Global Analysis (The Big Picture):\n"
            f"{_global_concepts(global_context)}\n\n"
        )
        if previous_context is not None:
            prompt += _previous_chunk_block(previous_context)
        prompt += f"--- Analyze this Text Chunk ({chunk_label or 'Chunk'}) ---\n{text}\n---"
    else:
        prompt += f"--- Text to analyze ---\n{text}\n---"

    return prompt
