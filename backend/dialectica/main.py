"""Dialectica API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ReaderError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Logging configured on startup via lifespan
    - Shutdown stops auto-run and waits at most shutdown_grace_seconds for an
      in-flight tick, cancelling it after that

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py, registered here
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dialectica import __version__
from dialectica.api.error_handlers import register_error_handlers
from dialectica.api.routes import health, knowledge, session
from dialectica.config import get_settings
from dialectica.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; analysis calls will fail")
    logger.info("Dialectica API started")
    yield
    if session._orchestrator is not None:
        await _drain_auto_run(session._orchestrator, settings.shutdown_grace_seconds)
    logger.info("Dialectica API shutting down")


async def _drain_auto_run(orchestrator, grace_seconds: float) -> None:
    """Stop auto-run and give an in-flight tick a bounded time to finish."""
    orchestrator.stop_auto_run()
    try:
        await asyncio.wait_for(orchestrator.auto_run.wait(), timeout=grace_seconds)
    except asyncio.TimeoutError:
        logger.warning(
            f"Auto-run tick still running after {grace_seconds}s; cancelled",
        )


app = FastAPI(
    title="Dialectica API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(session.router)
app.include_router(knowledge.router)

register_error_handlers(app)
