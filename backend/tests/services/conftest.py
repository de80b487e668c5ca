"""Service test fixtures — scripted analyzer, orchestrator and FastAPI test client.

Invariants:
    - Every test gets a fresh orchestrator around a fresh MockAnalyzer
    - get_orchestrator dependency overridden so routes never build a real client
    - Auto-run interval is zero: ticks run back-to-back without wall-clock waits
"""

import pytest
from httpx import ASGITransport, AsyncClient

from dialectica.api.routes.session import get_orchestrator
from dialectica.main import app
from dialectica.services.orchestrator import AnalysisOrchestrator

from tests.services.mock_analyzer import MockAnalyzer


@pytest.fixture
def analyzer():
    return MockAnalyzer()


@pytest.fixture
def orchestrator(analyzer):
    return AnalysisOrchestrator(
        analyzer, chunk_size=9000, consolidation_interval=3, auto_run_interval=0,
    )


@pytest.fixture
async def client(orchestrator):
    """FastAPI test client bound to the test orchestrator."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
    orchestrator.stop_auto_run()
