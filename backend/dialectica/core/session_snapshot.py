"""Session Snapshot — export / import of SessionState as one JSON document.

Invariants:
    - session_to_snapshot produces a JSON-safe dict (no Enums, no dataclasses)
    - session_from_snapshot validates the entire payload before building state;
      any failure raises SessionImportError and nothing is returned
    - In-flight phases never survive an import: FileLoaded -> Idle,
      IterativeAnalysis / Consolidating -> GlobalAnalysisComplete
    - current_chunk_index is clamped to the number of chunks in the document
    - A snapshot without a graph rebuilds it from the global analysis graph_data

Design Decisions:
    - Pydantic SessionExport as the single validation gate (both key styles)
    - The image is not part of the export — it only feeds the global pass
"""

import json

from pydantic import ValidationError

from dialectica.core.axiom_store import AxiomStore
from dialectica.core.concept_graph import ConceptGraph
from dialectica.core.domain_types import CHUNK_SIZE, Phase
from dialectica.core.errors import SessionImportError
from dialectica.core.session_state import SessionState
from dialectica.schemas.session import SessionExport

_RESUMABLE_PHASE: dict[Phase, Phase] = {
    Phase.FILE_LOADED: Phase.IDLE,
    Phase.ITERATIVE_ANALYSIS: Phase.GLOBAL_ANALYSIS_COMPLETE,
    Phase.CONSOLIDATING: Phase.GLOBAL_ANALYSIS_COMPLETE,
}


def session_to_snapshot(state: SessionState) -> dict:
    """Serialize SessionState to a JSON-safe dict. Pure, no IO."""
    return {
        "document_text": state.document_text,
        "document_name": state.document_name,
        "axioms": state.axioms.to_list(),
        "global_analysis": (
            state.global_analysis.model_dump(mode="json")
            if state.global_analysis else None
        ),
        "analysis_history": [
            a.model_dump(mode="json") for a in state.analysis_history
        ],
        "current_chunk_index": state.current_chunk_index,
        "phase": state.phase.value,
        "graph": state.graph.to_dict(),
        "chunks_since_consolidation": state.chunks_since_consolidation,
    }


def session_from_snapshot(
    data: dict | str | bytes, chunk_size: int = CHUNK_SIZE,
) -> SessionState:
    """Build a fresh SessionState from an export. Raises SessionImportError."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise SessionImportError(f"not valid JSON ({e.msg})") from e
    if not isinstance(data, dict):
        raise SessionImportError("expected a JSON object at the top level")

    try:
        export = SessionExport.model_validate(data)
    except ValidationError as e:
        raise SessionImportError(_summarize(e)) from e

    try:
        axioms = AxiomStore.from_list(a.model_dump() for a in export.axioms)
    except ValueError as e:
        raise SessionImportError(str(e)) from e

    state = SessionState(
        document_text=export.document_text,
        document_name=export.document_name,
        axioms=axioms,
        global_analysis=export.global_analysis,
        analysis_history=list(export.analysis_history),
        phase=(
            _RESUMABLE_PHASE[export.phase] if export.phase.is_in_flight
            else export.phase
        ),
        chunks_since_consolidation=export.chunks_since_consolidation,
        chunk_size=chunk_size,
    )
    state.current_chunk_index = min(export.current_chunk_index, state.total_chunks)
    state.graph = _restore_graph(export)
    return state


def _restore_graph(export: SessionExport) -> ConceptGraph:
    if export.graph is not None:
        return ConceptGraph.from_graph_data(export.graph)
    if export.global_analysis and export.global_analysis.graph_data:
        return ConceptGraph.from_graph_data(export.global_analysis.graph_data)
    return ConceptGraph()


def _summarize(error: ValidationError) -> str:
    """First few field errors as 'loc: msg' — enough to fix the file."""
    parts = [
        f"{'.'.join(str(p) for p in e['loc']) or '<root>'}: {e['msg']}"
        for e in error.errors()[:3]
    ]
    more = error.error_count() - len(parts)
    if more > 0:
        parts.append(f"(+{more} more)")
    return "; ".join(parts)
