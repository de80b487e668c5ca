"""Knowledge Routes — read-only views of axioms, concept graph and analyses.

Invariants:
    - Never mutates the session
    - Axioms listed in creation order; stale ones only when include_stale=true
    - Unknown axiom id → 404 via ResourceNotFoundError
"""

import logging

from fastapi import APIRouter, Depends, Query

from dialectica.api.routes.session import get_orchestrator
from dialectica.core.errors import ResourceNotFoundError
from dialectica.schemas.analysis import GraphData
from dialectica.schemas.session import AnalysisOverview, AxiomRecord
from dialectica.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/knowledge", tags=["knowledge"])


@router.get("/axioms", response_model=list[AxiomRecord])
async def list_axioms(
    include_stale: bool = Query(False),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    store = orchestrator.state.axioms
    axioms = store.list_all() if include_stale else store.list_active()
    return [AxiomRecord.model_validate(a.to_dict()) for a in axioms]


@router.get("/axioms/{axiom_id}", response_model=AxiomRecord)
async def get_axiom(
    axiom_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    axiom = orchestrator.state.axioms.get(axiom_id)
    if axiom is None:
        raise ResourceNotFoundError("Axiom", axiom_id)
    return AxiomRecord.model_validate(axiom.to_dict())


@router.get("/graph", response_model=GraphData)
async def get_graph(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Current concept graph (nodes + links)."""
    return GraphData.model_validate(orchestrator.state.graph.to_dict())


@router.get("/analysis", response_model=AnalysisOverview)
async def get_analysis(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    state = orchestrator.state
    return AnalysisOverview(
        global_analysis=state.global_analysis,
        analysis_history=list(state.analysis_history),
    )
