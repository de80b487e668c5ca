"""Domain Types — enums and workflow constants shared across the reader.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Phase values match the session export format byte-for-byte
    - AxiomStatus.STALE is the only status excluded from prompts

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (export files, tool input)
"""

from enum import Enum


# ─── Workflow Constants ──────────────────────────────────────────

CHUNK_SIZE = 9000
CONSOLIDATION_INTERVAL = 3
AUTO_RUN_INTERVAL_SECONDS = 4.0

GLOBAL_LABEL = "Global"
CONSOLIDATION_LABEL = "Hermeneutic Reflection"


# ─── Enums ───────────────────────────────────────────────────────

class Phase(str, Enum):
    """Orchestrator states. Stable states accept new operations."""
    IDLE = "Idle"
    FILE_LOADED = "FileLoaded"
    GLOBAL_ANALYSIS_COMPLETE = "GlobalAnalysisComplete"
    ITERATIVE_ANALYSIS = "IterativeAnalysis"
    ITERATIVE_ANALYSIS_COMPLETE = "IterativeAnalysisComplete"
    CONSOLIDATING = "Consolidating"

    @property
    def is_in_flight(self) -> bool:
        """Whether an LLM call is outstanding in this phase."""
        return self in {
            Phase.FILE_LOADED,
            Phase.ITERATIVE_ANALYSIS,
            Phase.CONSOLIDATING,
        }


class AnalysisPhase(str, Enum):
    """Kind of LLM request — selects instructions and output schema."""
    GLOBAL = "global"
    ITERATIVE = "iterative"
    CONSOLIDATION = "consolidation"


class AxiomStatus(str, Enum):
    """Axiom lifecycle status.

    - MATERIAL: freshly proposed, unverified
    - FORMAL: confirmed / promoted during reflection
    - REFINED: conclusion updated, still active
    - STALE: superseded or contradicted; kept for audit, never prompted
    """
    MATERIAL = "Material"
    FORMAL = "Formal"
    STALE = "Stale"
    REFINED = "Refined"


class StepKind(str, Enum):
    """What a single orchestrator advance() actually did."""
    CHUNK = "chunk"
    CONSOLIDATION = "consolidation"
    COMPLETE = "complete"
