"""Session State — the complete, resumable state of one reading session.

Invariants:
    - analysis_history is append-only and ordered by chunk
    - current_chunk_index <= total_chunks
    - chunks_since_consolidation counts successful chunk analyses since the
      last consolidation pass
    - generation changes whenever the session is reset or replaced, so a late
      LLM result can tell it belongs to a session that no longer exists

Design Decisions:
    - Pure dataclass, no IO: owned exclusively by the orchestrator
    - text_chunks cached per document text, recomputed only when it changes
"""

from dataclasses import dataclass, field

from dialectica.core.axiom_store import AxiomStore
from dialectica.core.chunking import split_into_chunks
from dialectica.core.concept_graph import ConceptGraph
from dialectica.core.domain_types import CHUNK_SIZE, Phase
from dialectica.schemas.analysis import Analysis


@dataclass
class ImageData:
    """Inline image attached to the global analysis request."""
    data: str  # base64
    mime_type: str


@dataclass
class SessionState:
    """Per-session workflow state — pure dataclass, no IO."""

    document_text: str | None = None
    document_name: str | None = None
    image: ImageData | None = None

    axioms: AxiomStore = field(default_factory=AxiomStore)
    global_analysis: Analysis | None = None
    analysis_history: list[Analysis] = field(default_factory=list)
    graph: ConceptGraph = field(default_factory=ConceptGraph)

    phase: Phase = Phase.IDLE
    current_chunk_index: int = 0
    chunks_since_consolidation: int = 0
    chunk_size: int = CHUNK_SIZE

    last_error: str | None = None
    generation: int = 0

    _chunk_cache: tuple[str, int, list[str]] | None = field(
        default=None, init=False, repr=False, compare=False,
    )

    # --- Computed properties --------------------------------------------------

    @property
    def has_document(self) -> bool:
        return bool(self.document_text)

    @property
    def text_chunks(self) -> list[str]:
        text = self.document_text or ""
        cached = self._chunk_cache
        if cached is None or cached[0] is not text or cached[1] != self.chunk_size:
            self._chunk_cache = (text, self.chunk_size, split_into_chunks(text, self.chunk_size))
        return self._chunk_cache[2]

    @property
    def total_chunks(self) -> int:
        return len(self.text_chunks)

    @property
    def chunks_remaining(self) -> int:
        return max(0, self.total_chunks - self.current_chunk_index)

    @property
    def previous_analysis(self) -> Analysis | None:
        """Most recent chunk analysis — the immediate context for the next chunk."""
        return self.analysis_history[-1] if self.analysis_history else None
