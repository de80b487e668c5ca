"""System Prompt — tests for per-phase instruction assembly.

Invariants:
    - Every phase shares the common PML vocabulary and names record_analysis
    - Each phase appends only its own section
"""

import pytest

from dialectica.core.domain_types import AnalysisPhase
from dialectica.services.system_prompt import build_system_prompt


@pytest.mark.parametrize("phase", list(AnalysisPhase))
def test_every_phase_names_the_tool(phase):
    assert "record_analysis" in build_system_prompt(phase)


def test_sections_are_phase_specific():
    global_prompt = build_system_prompt(AnalysisPhase.GLOBAL)
    iterative = build_system_prompt(AnalysisPhase.ITERATIVE)
    consolidation = build_system_prompt(AnalysisPhase.CONSOLIDATION)

    assert "GLOBAL ANALYSIS" in global_prompt
    assert "ITERATIVE DEEP DIVE" not in global_prompt
    assert "PREFER UPDATING" in iterative
    assert "HERMENEUTIC REFLECTION" in consolidation
    assert "updated_graph_data" in consolidation
    assert "updated_graph_data" not in iterative
