"""Mock Analyzer — scripted stand-in for AnalysisClient in orchestrator tests.

Invariants:
    - Outcomes are consumed in order, one per analyze() call
    - An outcome that is an Exception instance is raised instead of returned
    - calls records every analyze() argument set for assertions
    - gate (optional asyncio.Event) holds the next call open until set
"""

import asyncio

from dialectica.schemas.analysis import Analysis


class MockAnalyzer:
    def __init__(self, outcomes=()):
        self.outcomes = list(outcomes)
        self.calls = []
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()

    async def analyze(
        self, text, axioms, *, phase, image=None,
        global_context=None, previous_context=None, chunk_label=None,
    ):
        self.calls.append({
            "text": text,
            "axiom_ids": [a.id for a in axioms],
            "phase": phase,
            "image": image,
            "global_context": global_context,
            "previous_context": previous_context,
            "chunk_label": chunk_label,
        })
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if not self.outcomes:
            raise RuntimeError(f"MockAnalyzer: no outcome for call {len(self.calls)}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# -- Analysis builders ---------------------------------------------------------


def proposal(conclusion, premises=("p",)):
    return {
        "premises": list(premises),
        "conclusion": conclusion,
        "rationale": f"because {conclusion}",
        "polarity": "compressive",
    }


def global_analysis(conclusions=("g1", "g2"), nodes=("being", "nothing")):
    return Analysis.model_validate({
        "key_concepts": list(nodes),
        "proposed_axioms": [proposal(c) for c in conclusions],
        "graph_data": {
            "nodes": [{"id": n} for n in nodes],
            "links": [{"source": nodes[0], "target": nodes[-1]}] if nodes else [],
        },
    })


def chunk_analysis(conclusions=("c",), updates=(), nodes=()):
    data = {
        "key_concepts": ["chunk"],
        "proposed_axioms": [proposal(c) for c in conclusions],
        "axiom_updates": list(updates),
    }
    if nodes:
        data["graph_data"] = {"nodes": [{"id": n} for n in nodes], "links": []}
    return Analysis.model_validate(data)


def consolidation_analysis(updates=(), concepts=None, graph_nodes=None):
    data = {"axiom_updates": list(updates)}
    if concepts is not None:
        data["updated_global_concepts"] = list(concepts)
    if graph_nodes is not None:
        data["updated_graph_data"] = {
            "nodes": [{"id": n} for n in graph_nodes], "links": [],
        }
    return Analysis.model_validate(data)
