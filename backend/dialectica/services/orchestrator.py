"""Analysis Orchestrator — the reading session state machine.

Invariants:
    - At most one LLM call in flight: operations are gated on stable phases and
      the phase moves to an in-flight state before the first await
    - Nothing is merged until the call returned a validated Analysis, so a
      failed step leaves axioms, graph and history exactly as before
    - Consolidation runs before the next chunk once chunks_since_consolidation
      reaches consolidation_interval; the counter resets afterwards (success
      or failure)
    - Any failed step records last_error, stops auto-run, restores the last
      stable phase and re-raises
    - A result that resolves after reset/import (generation changed) is
      discarded, never merged into the new session

Design Decisions:
    - The orchestrator owns SessionState; collaborators (Analyzer, auto-run)
      never touch it directly
    - Consolidation field-merges the global analysis: only the fields the
      model supplied (non-empty) replace the current ones
    - Auto-run is created here but drives the orchestrator through the
      public advance(), same gate as a manual step
"""

import logging

from dialectica.core.boundary_protocols import Analyzer
from dialectica.core.chunking import chunk_label
from dialectica.core.concept_graph import GraphDelta, reconcile_delta
from dialectica.core.domain_types import (
    AUTO_RUN_INTERVAL_SECONDS,
    CHUNK_SIZE,
    CONSOLIDATION_INTERVAL,
    CONSOLIDATION_LABEL,
    GLOBAL_LABEL,
    AnalysisPhase,
    Phase,
    StepKind,
)
from dialectica.core.errors import PhaseTransitionError
from dialectica.core.session_snapshot import session_from_snapshot, session_to_snapshot
from dialectica.core.session_state import ImageData, SessionState
from dialectica.schemas.analysis import Analysis
from dialectica.schemas.session import SessionStatusResponse
from dialectica.services.auto_run import AutoRunScheduler

logger = logging.getLogger(__name__)

_STEPPABLE = (Phase.GLOBAL_ANALYSIS_COMPLETE, Phase.ITERATIVE_ANALYSIS_COMPLETE)


class AnalysisOrchestrator:
    """Drives one document through global, iterative and consolidation passes."""

    def __init__(
        self,
        client: Analyzer,
        chunk_size: int = CHUNK_SIZE,
        consolidation_interval: int = CONSOLIDATION_INTERVAL,
        auto_run_interval: float = AUTO_RUN_INTERVAL_SECONDS,
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.client = client
        self.chunk_size = chunk_size
        self.consolidation_interval = consolidation_interval
        self._state = SessionState(chunk_size=chunk_size)
        self.auto_run = AutoRunScheduler(self, auto_run_interval)

    # --- Read accessors -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def total_chunks(self) -> int:
        return self._state.total_chunks

    @property
    def generation(self) -> int:
        return self._state.generation

    def status(self) -> SessionStatusResponse:
        state = self._state
        return SessionStatusResponse(
            phase=state.phase,
            document_name=state.document_name,
            current_chunk_index=state.current_chunk_index,
            total_chunks=state.total_chunks,
            chunks_since_consolidation=state.chunks_since_consolidation,
            axiom_count=len(state.axioms),
            active_axiom_count=len(state.axioms.list_active()),
            history_length=len(state.analysis_history),
            auto_run_active=self.auto_run.is_running,
            last_error=state.last_error,
        )

    # --- Session lifecycle ----------------------------------------------------

    def load_document(
        self, text: str, name: str = "untitled", image: ImageData | None = None,
    ) -> None:
        """Start a fresh session for a document. Phase stays Idle."""
        self._replace_state(SessionState(
            document_text=text,
            document_name=name,
            image=image,
            chunk_size=self.chunk_size,
        ))
        logger.info(
            f"Document loaded: {name} ({len(text)} chars, "
            f"{self._state.total_chunks} chunks)",
        )

    def reset(self) -> None:
        """Stop auto-run and discard the session entirely."""
        self._replace_state(SessionState(chunk_size=self.chunk_size))
        logger.info("Session reset")

    def dismiss_error(self) -> None:
        self._state.last_error = None

    def export_session(self) -> dict:
        return session_to_snapshot(self._state)

    def import_session(self, payload: dict | str | bytes) -> None:
        """Replace the session with an exported one.

        Raises SessionImportError before touching the current session.
        """
        imported = session_from_snapshot(payload, chunk_size=self.chunk_size)
        self._replace_state(imported)
        logger.info(
            f"Session imported: {imported.document_name} "
            f"({len(imported.axioms)} axioms, chunk "
            f"{imported.current_chunk_index}/{imported.total_chunks})",
            extra={"phase": imported.phase.value},
        )

    # --- Analysis steps -------------------------------------------------------

    async def start(self) -> None:
        """Run the global analysis over the whole document."""
        state = self._state
        if state.phase != Phase.IDLE or not state.has_document:
            raise PhaseTransitionError(
                "start the global analysis", state.phase.value,
                None if state.has_document else "no document loaded",
            )
        generation = state.generation
        state.phase = Phase.FILE_LOADED
        state.last_error = None
        try:
            analysis = await self.client.analyze(
                state.document_text, [],
                phase=AnalysisPhase.GLOBAL,
                image=state.image,
                chunk_label=GLOBAL_LABEL,
            )
        except Exception as e:
            self._record_failure(generation, e, Phase.IDLE, GLOBAL_LABEL)
            raise
        if self._is_stale(generation, GLOBAL_LABEL):
            return

        state.global_analysis = analysis
        created, updated = state.axioms.merge(analysis, GLOBAL_LABEL)
        if analysis.graph_data is not None:
            state.graph.apply_delta(GraphDelta.from_graph_data(analysis.graph_data))
        state.current_chunk_index = 0
        state.phase = Phase.GLOBAL_ANALYSIS_COMPLETE
        logger.info(
            f"Global analysis complete: {len(analysis.key_concepts)} concepts, "
            f"{len(state.graph.nodes)} graph nodes",
            extra={
                "phase": AnalysisPhase.GLOBAL.value,
                "axioms_created": created,
                "axioms_updated": updated,
            },
        )

    async def advance(self) -> StepKind:
        """Run the next unit of work: a due consolidation, the next chunk, or completion."""
        state = self._state
        if state.phase not in _STEPPABLE:
            raise PhaseTransitionError("advance", state.phase.value)

        if self._consolidation_due(state):
            await self._consolidate(state)
            return StepKind.CONSOLIDATION

        if (
            state.phase == Phase.ITERATIVE_ANALYSIS_COMPLETE
            or state.chunks_remaining == 0
        ):
            self._complete(state)
            return StepKind.COMPLETE

        index = state.current_chunk_index
        total = state.total_chunks
        label = chunk_label(index, total)
        generation = state.generation
        state.phase = Phase.ITERATIVE_ANALYSIS
        state.last_error = None
        try:
            analysis = await self.client.analyze(
                state.text_chunks[index],
                state.axioms.list_active(),
                phase=AnalysisPhase.ITERATIVE,
                global_context=state.global_analysis,
                previous_context=state.previous_analysis,
                chunk_label=label,
            )
        except Exception as e:
            self._record_failure(generation, e, Phase.GLOBAL_ANALYSIS_COMPLETE, label)
            raise
        if self._is_stale(generation, label):
            return StepKind.CHUNK

        state.analysis_history.append(analysis)
        created, updated = state.axioms.merge(analysis, label)
        if analysis.graph_data is not None:
            state.graph.apply_delta(GraphDelta.from_graph_data(analysis.graph_data))
        state.current_chunk_index = index + 1
        state.chunks_since_consolidation += 1
        logger.info(
            f"{label} analyzed",
            extra={
                "phase": AnalysisPhase.ITERATIVE.value,
                "chunk_label": label,
                "axioms_created": created,
                "axioms_updated": updated,
            },
        )
        if state.chunks_remaining == 0:
            self._complete(state)
        else:
            state.phase = Phase.GLOBAL_ANALYSIS_COMPLETE
        return StepKind.CHUNK

    async def consolidate(self) -> None:
        """Run a hermeneutic reflection now, regardless of the counter."""
        state = self._state
        if state.phase not in _STEPPABLE:
            raise PhaseTransitionError("consolidate", state.phase.value)
        await self._consolidate(state)

    # --- Auto-run -------------------------------------------------------------

    def start_auto_run(self) -> bool:
        """Begin advancing on a timer. Returns False if it was already running."""
        if not self.auto_run.is_running and self.phase not in _STEPPABLE:
            raise PhaseTransitionError("start auto-run", self.phase.value)
        return self.auto_run.start()

    def stop_auto_run(self) -> None:
        self.auto_run.stop()

    # --- Internals ------------------------------------------------------------

    def _consolidation_due(self, state: SessionState) -> bool:
        return (
            state.chunks_since_consolidation > 0
            and state.chunks_since_consolidation >= self.consolidation_interval
        )

    async def _consolidate(self, state: SessionState) -> None:
        generation = state.generation
        state.phase = Phase.CONSOLIDATING
        state.last_error = None
        try:
            analysis = await self.client.analyze(
                "",
                state.axioms.list_active(),
                phase=AnalysisPhase.CONSOLIDATION,
                global_context=state.global_analysis,
                chunk_label=CONSOLIDATION_LABEL,
            )
        except Exception as e:
            if self._state.generation == generation:
                state.chunks_since_consolidation = 0
            self._record_failure(
                generation, e, Phase.GLOBAL_ANALYSIS_COMPLETE, CONSOLIDATION_LABEL,
            )
            raise
        if self._is_stale(generation, CONSOLIDATION_LABEL):
            return

        created, updated = state.axioms.merge(analysis, CONSOLIDATION_LABEL)
        state.global_analysis = _refine_global(state.global_analysis, analysis)
        refined_graph = analysis.updated_graph_data
        if refined_graph is not None and refined_graph.nodes:
            state.graph.apply_delta(reconcile_delta(state.graph, refined_graph))
        state.chunks_since_consolidation = 0
        state.phase = Phase.GLOBAL_ANALYSIS_COMPLETE
        logger.info(
            "Consolidation complete",
            extra={
                "phase": AnalysisPhase.CONSOLIDATION.value,
                "chunk_label": CONSOLIDATION_LABEL,
                "axioms_created": created,
                "axioms_updated": updated,
            },
        )

    def _complete(self, state: SessionState) -> None:
        if state.phase != Phase.ITERATIVE_ANALYSIS_COMPLETE:
            logger.info(
                f"Iterative analysis complete ({state.total_chunks} chunks)",
                extra={"phase": Phase.ITERATIVE_ANALYSIS_COMPLETE.value},
            )
        state.phase = Phase.ITERATIVE_ANALYSIS_COMPLETE
        self.auto_run.stop()

    def _replace_state(self, state: SessionState) -> None:
        self.auto_run.stop()
        state.generation = self._state.generation + 1
        self._state = state

    def _is_stale(self, generation: int, label: str) -> bool:
        if self._state.generation == generation:
            return False
        logger.warning(
            f"Discarding {label} result: session was replaced while it was running",
            extra={"chunk_label": label},
        )
        return True

    def _record_failure(
        self, generation: int, error: Exception, stable_phase: Phase, label: str,
    ) -> None:
        """Surface a failed step on the session it belongs to."""
        if self._is_stale(generation, label):
            return
        state = self._state
        state.last_error = str(error)
        state.phase = stable_phase
        self.auto_run.stop()
        logger.error(
            f"{label} analysis failed: {error}",
            extra={
                "chunk_label": label,
                "error_code": getattr(error, "code", None),
            },
        )


def _refine_global(current: Analysis | None, refinement: Analysis) -> Analysis | None:
    """Field-merge a consolidation result into the global analysis."""
    if current is None:
        return None
    changes: dict = {}
    if refinement.updated_global_concepts:
        changes["key_concepts"] = list(refinement.updated_global_concepts)
    if refinement.updated_graph_data is not None and refinement.updated_graph_data.nodes:
        changes["graph_data"] = refinement.updated_graph_data
    return current.model_copy(update=changes) if changes else current
