"""Boundary Protocols — contracts between the orchestrator and its collaborators.

Invariants:
    - The orchestrator depends on Analyzer, never on a concrete client
    - The auto-run scheduler depends on Steppable, never on the orchestrator class

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
"""

from collections.abc import Iterable
from typing import Protocol

from dialectica.core.axiom_store import Axiom
from dialectica.core.domain_types import AnalysisPhase, Phase, StepKind
from dialectica.core.session_state import ImageData
from dialectica.schemas.analysis import Analysis


class Analyzer(Protocol):
    """Contract for the LLM analysis capability — implemented by AnalysisClient."""
    async def analyze(
        self,
        text: str,
        axioms: Iterable[Axiom],
        *,
        phase: AnalysisPhase,
        image: ImageData | None = None,
        global_context: Analysis | None = None,
        previous_context: Analysis | None = None,
        chunk_label: str | None = None,
    ) -> Analysis: ...


class Steppable(Protocol):
    """Contract for anything the auto-run scheduler can drive."""
    @property
    def phase(self) -> Phase: ...

    async def advance(self) -> StepKind: ...

    @property
    def generation(self) -> int:
        """Changes whenever the underlying session is reset or replaced."""
        ...
