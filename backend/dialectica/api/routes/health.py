"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if no Anthropic API key is configured

Design Decisions:
    - Separate liveness/readiness: a missing key keeps the process alive but
      every analysis would fail, so the instance is not ready
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from dialectica import __version__
from dialectica.config import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "dialectica-api",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — LLM credentials must be configured."""
    if not get_settings().anthropic_api_key:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "anthropic_api_key_missing",
            },
        )
    return {"status": "ready", "checks": {"anthropic": "configured"}}
