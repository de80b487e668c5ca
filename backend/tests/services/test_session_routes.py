"""Route Tests: session and knowledge endpoints through the ASGI app.

Invariants:
    - Every route delegates to the overridden orchestrator
    - ReaderError maps to its http_status with the structured error envelope
    - Request validation failures return 400 VALIDATION_ERROR
    - Knowledge views are read-only and reflect the live session
"""

import logging

from dialectica.core.errors import RetryBudgetExhaustedError, TransientServiceError

from tests.services.mock_analyzer import (
    chunk_analysis, consolidation_analysis, global_analysis,
)


# -- Helpers -------------------------------------------------------------------

async def _load_and_start(client, analyzer, text="x" * 20_000):
    analyzer.outcomes.append(global_analysis())
    resp = await client.post(
        "/api/v1/session/document", json={"text": text, "name": "doc.txt"},
    )
    assert resp.status_code == 200
    resp = await client.post("/api/v1/session/start")
    assert resp.status_code == 200
    return resp.json()


# ==============================================================================
# Health
# ==============================================================================


async def test_health_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_health_readiness_with_key(client):
    resp = await client.get("/api/v1/health/ready")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ready"


# ==============================================================================
# Session lifecycle
# ==============================================================================


async def test_load_document_returns_idle_status(client):
    resp = await client.post(
        "/api/v1/session/document", json={"text": "x" * 20_000, "name": "doc.txt"},
    )
    body = resp.json()
    assert resp.status_code == 200
    assert body["phase"] == "Idle"
    assert body["total_chunks"] == 3
    assert body["document_name"] == "doc.txt"


async def test_load_blank_document_rejected(client):
    resp = await client.post("/api/v1/session/document", json={"text": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_load_document_rejects_non_image_attachment(client):
    resp = await client.post("/api/v1/session/document", json={
        "text": "text", "image": {"data": "AAAA", "mime_type": "application/pdf"},
    })
    assert resp.status_code == 400


async def test_start_then_advance(client, analyzer):
    body = await _load_and_start(client, analyzer)
    assert body["phase"] == "GlobalAnalysisComplete"
    assert body["axiom_count"] == 2

    analyzer.outcomes.append(chunk_analysis(["c1"]))
    resp = await client.post("/api/v1/session/advance")
    body = resp.json()
    assert resp.status_code == 200
    assert body["step"] == "chunk"
    assert body["current_chunk_index"] == 1
    assert body["chunks_since_consolidation"] == 1


async def test_advance_from_idle_is_conflict(client):
    resp = await client.post("/api/v1/session/advance")
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "PHASE_TRANSITION_INVALID"
    assert error["category"] == "business_rule"


async def test_llm_failure_surfaces_and_can_be_dismissed(client, analyzer):
    await _load_and_start(client, analyzer)
    analyzer.outcomes.append(TransientServiceError("overloaded", "overloaded"))

    resp = await client.post("/api/v1/session/advance")
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "LLM_TRANSIENT_ERROR"

    status = (await client.get("/api/v1/session")).json()
    assert status["phase"] == "GlobalAnalysisComplete"
    assert "overloaded" in status["last_error"]

    resp = await client.delete("/api/v1/session/error")
    assert resp.json()["last_error"] is None


async def test_exhausted_rate_limit_sends_retry_after(client, analyzer):
    await _load_and_start(client, analyzer)
    analyzer.outcomes.append(RetryBudgetExhaustedError(
        3, TransientServiceError("slow down", "rate_limit", retry_after_ms=2500),
    ))

    resp = await client.post("/api/v1/session/advance")
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "LLM_RETRIES_EXHAUSTED"
    assert resp.headers["retry-after"] == "3"


async def test_phase_conflict_logged_at_info_without_retry_after(client, caplog):
    with caplog.at_level(logging.INFO, logger="dialectica.api.error_handlers"):
        resp = await client.post("/api/v1/session/advance")

    assert resp.status_code == 409
    assert "retry-after" not in resp.headers
    record = next(
        r for r in caplog.records if r.name == "dialectica.api.error_handlers"
    )
    assert record.levelno == logging.INFO
    assert record.error_code == "PHASE_TRANSITION_INVALID"
    assert record.phase == "Idle"


async def test_consolidate_endpoint(client, analyzer):
    await _load_and_start(client, analyzer)
    analyzer.outcomes.append(chunk_analysis([]))
    await client.post("/api/v1/session/advance")
    analyzer.outcomes.append(consolidation_analysis(concepts=["synthesis"]))
    resp = await client.post("/api/v1/session/consolidate")
    assert resp.status_code == 200
    assert resp.json()["chunks_since_consolidation"] == 0


async def test_reset_clears_session(client, analyzer):
    await _load_and_start(client, analyzer)
    resp = await client.post("/api/v1/session/reset")
    body = resp.json()
    assert body["phase"] == "Idle"
    assert body["axiom_count"] == 0
    assert body["document_name"] is None


async def test_auto_run_start_and_stop(client, analyzer, orchestrator):
    await _load_and_start(client, analyzer)
    analyzer.outcomes += [chunk_analysis([]) for _ in range(3)]

    resp = await client.post("/api/v1/session/auto-run/start")
    assert resp.status_code == 200
    await orchestrator.auto_run.wait()

    resp = await client.post("/api/v1/session/auto-run/stop")
    body = resp.json()
    assert body["auto_run_active"] is False
    assert body["phase"] == "IterativeAnalysisComplete"


async def test_auto_run_start_from_idle_is_conflict(client):
    resp = await client.post("/api/v1/session/auto-run/start")
    assert resp.status_code == 409


# ==============================================================================
# Export / import
# ==============================================================================


async def test_export_import_round_trip(client, analyzer):
    await _load_and_start(client, analyzer)
    exported = (await client.get("/api/v1/session/export")).json()
    assert exported["phase"] == "GlobalAnalysisComplete"
    assert [a["id"] for a in exported["axioms"]] == ["A1", "A2"]

    await client.post("/api/v1/session/reset")
    resp = await client.post("/api/v1/session/import", json=exported)
    body = resp.json()
    assert resp.status_code == 200
    assert body["phase"] == "GlobalAnalysisComplete"
    assert body["axiom_count"] == 2


async def test_import_accepts_legacy_keys(client):
    resp = await client.post("/api/v1/session/import", json={
        "fileContent": "y" * 10_000,
        "fileName": "legacy.txt",
        "axioms": [{"id": "A7", "status": "Formal", "conclusion": "c"}],
        "currentChunkIndex": 1,
        "phase": "AutoIterating",
        "graphData": {"nodes": [{"id": "n1"}], "links": []},
    })
    body = resp.json()
    assert resp.status_code == 200
    assert body["phase"] == "GlobalAnalysisComplete"
    assert body["document_name"] == "legacy.txt"
    assert body["current_chunk_index"] == 1


async def test_invalid_import_rejected(client, analyzer):
    await _load_and_start(client, analyzer)
    resp = await client.post("/api/v1/session/import", json={"phase": "Dancing"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "SESSION_IMPORT_INVALID"

    status = (await client.get("/api/v1/session")).json()
    assert status["phase"] == "GlobalAnalysisComplete"
    assert status["axiom_count"] == 2


# ==============================================================================
# Knowledge views
# ==============================================================================


async def test_axiom_views_filter_stale(client, analyzer):
    await _load_and_start(client, analyzer)
    analyzer.outcomes.append(chunk_analysis([], updates=[{
        "axiom_id": "A1", "new_status": "Stale", "modification_rationale": "dropped",
    }]))
    await client.post("/api/v1/session/advance")

    active = (await client.get("/api/v1/knowledge/axioms")).json()
    everything = (await client.get(
        "/api/v1/knowledge/axioms", params={"include_stale": "true"},
    )).json()
    assert [a["id"] for a in active] == ["A2"]
    assert [a["id"] for a in everything] == ["A1", "A2"]
    assert everything[0]["status"] == "Stale"


async def test_get_axiom_by_id(client, analyzer):
    await _load_and_start(client, analyzer)
    resp = await client.get("/api/v1/knowledge/axioms/A2")
    assert resp.status_code == 200
    assert resp.json()["history"] == ["[Global] Created"]

    resp = await client.get("/api/v1/knowledge/axioms/A99")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_graph_and_analysis_views(client, analyzer):
    await _load_and_start(client, analyzer)
    graph = (await client.get("/api/v1/knowledge/graph")).json()
    assert {n["id"] for n in graph["nodes"]} == {"being", "nothing"}
    assert graph["links"][0]["source"] == "being"

    analysis = (await client.get("/api/v1/knowledge/analysis")).json()
    assert analysis["global_analysis"]["key_concepts"] == ["being", "nothing"]
    assert analysis["analysis_history"] == []
