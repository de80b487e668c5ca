"""Session Routes — document loading, analysis steps, auto-run and export/import.

Invariants:
    - One orchestrator per process, created lazily from settings
    - Routes never contain workflow logic: every mutation goes through the
      orchestrator, which enforces phase gating
    - ReaderError propagates to the global handler (409 for bad phase,
      400 for bad session files, 502/503 for LLM failures)

Design Decisions:
    - _orchestrator as module-level holder: single-process uvicorn, state lost
      on restart (export the session to keep it)
    - get_orchestrator exposed as a dependency so tests override it
"""

import logging

from fastapi import APIRouter, Body, Depends

from dialectica.config import Settings, get_settings
from dialectica.core.session_state import ImageData
from dialectica.infrastructure.anthropic_client import ResilientAnthropicClient
from dialectica.schemas.session import (
    AdvanceResponse, DocumentLoad, SessionStatusResponse,
)
from dialectica.services.analysis_client import AnalysisClient
from dialectica.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/session", tags=["session"])

_orchestrator: AnalysisOrchestrator | None = None


def build_orchestrator(settings: Settings) -> AnalysisOrchestrator:
    """Wire transport → analysis client → orchestrator from settings."""
    transport = ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        max_retries=settings.anthropic_max_retries,
        base_delay_ms=settings.anthropic_base_delay_ms,
        max_delay_ms=settings.anthropic_max_delay_ms,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )
    client = AnalysisClient(
        transport,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
    )
    return AnalysisOrchestrator(
        client,
        chunk_size=settings.chunk_size,
        consolidation_interval=settings.consolidation_interval,
        auto_run_interval=settings.auto_run_interval_seconds,
    )


def get_orchestrator() -> AnalysisOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(get_settings())
        logger.info("Orchestrator created")
    return _orchestrator


@router.get("", response_model=SessionStatusResponse)
async def get_status(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.status()


@router.post("/document", response_model=SessionStatusResponse)
async def load_document(
    body: DocumentLoad,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Replace the session with a new document (phase Idle)."""
    image = (
        ImageData(data=body.image.data, mime_type=body.image.mime_type)
        if body.image else None
    )
    orchestrator.load_document(body.text, body.name, image)
    return orchestrator.status()


@router.post("/start", response_model=SessionStatusResponse)
async def start_analysis(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Run the global analysis over the loaded document."""
    await orchestrator.start()
    return orchestrator.status()


@router.post("/advance", response_model=AdvanceResponse)
async def advance(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    """Analyze the next chunk (or run a due consolidation)."""
    step = await orchestrator.advance()
    return AdvanceResponse(**orchestrator.status().model_dump(), step=step)


@router.post("/consolidate", response_model=SessionStatusResponse)
async def consolidate(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Run a hermeneutic reflection now."""
    await orchestrator.consolidate()
    return orchestrator.status()


@router.post("/reset", response_model=SessionStatusResponse)
async def reset(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    orchestrator.reset()
    return orchestrator.status()


@router.delete("/error", response_model=SessionStatusResponse)
async def dismiss_error(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    orchestrator.dismiss_error()
    return orchestrator.status()


@router.get("/export")
async def export_session(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Full session document, re-importable via POST /import."""
    return orchestrator.export_session()


@router.post("/import", response_model=SessionStatusResponse)
async def import_session(
    payload: dict = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Replace the session with an exported one. Invalid files leave it untouched."""
    orchestrator.import_session(payload)
    return orchestrator.status()


@router.post("/auto-run/start", response_model=SessionStatusResponse)
async def start_auto_run(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    orchestrator.start_auto_run()
    return orchestrator.status()


@router.post("/auto-run/stop", response_model=SessionStatusResponse)
async def stop_auto_run(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    orchestrator.stop_auto_run()
    return orchestrator.status()
