"""Analysis Schemas — Pydantic models for the structured LLM response.

Invariants:
    - One model per request phase; each rejects payloads missing required fields
    - GlobalAnalysisResult requires graph_data
    - IterativeAnalysisResult / ConsolidationResult accept axiom_updates
    - Analysis is the unified stored shape (global analysis + history entries)

Design Decisions:
    - Phase models validate at the LLM boundary; Analysis is what the rest of
      the system reads, so downstream code never branches on response variant
    - Flat wire format only (proposed_axioms / axiom_updates), no mixing with
      the prose/logic sectioned variant
    - Unknown keys ignored: the model may add commentary fields we don't use
"""

from pydantic import BaseModel, ConfigDict, Field

from dialectica.core.domain_types import AnalysisPhase, AxiomStatus


class PMLFormalization(BaseModel):
    """A concept rendered in polarized-modal-logic notation."""
    concept: str
    formalization: str
    explanation: str


class ProposedAxiom(BaseModel):
    """A new premises → conclusion statement proposed by the model."""
    premises: list[str]
    conclusion: str
    rationale: str
    polarity: str


class AxiomUpdate(BaseModel):
    """Modification of an existing axiom, referenced by id."""
    axiom_id: str
    new_status: AxiomStatus | None = None
    modification_rationale: str
    refined_conclusion: str | None = None


class DialecticalPattern(BaseModel):
    pattern: str
    concepts: list[str]
    description: str


class GraphNodeData(BaseModel):
    id: str
    name: str | None = None


class GraphLinkData(BaseModel):
    source: str
    target: str
    label: str | None = None


class GraphData(BaseModel):
    """Full concept graph snapshot as sent by the model."""
    nodes: list[GraphNodeData] = Field(default_factory=list)
    links: list[GraphLinkData] = Field(default_factory=list)


# --- Phase-specific response models -------------------------------------------

class _AnalysisBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key_concepts: list[str]
    pml_formalizations: list[PMLFormalization]
    proposed_axioms: list[ProposedAxiom]
    dialectical_patterns: list[DialecticalPattern]


class GlobalAnalysisResult(_AnalysisBase):
    """Whole-document pass: seed axioms plus the initial concept graph."""
    graph_data: GraphData


class IterativeAnalysisResult(_AnalysisBase):
    """Per-chunk pass: updates preferred over new axioms."""
    axiom_updates: list[AxiomUpdate] = Field(default_factory=list)
    graph_data: GraphData | None = None


class ConsolidationResult(_AnalysisBase):
    """Hermeneutic reflection: merges axioms, refines the whole."""
    axiom_updates: list[AxiomUpdate] = Field(default_factory=list)
    updated_global_concepts: list[str] | None = None
    updated_graph_data: GraphData | None = None


RESPONSE_MODELS: dict[AnalysisPhase, type[_AnalysisBase]] = {
    AnalysisPhase.GLOBAL: GlobalAnalysisResult,
    AnalysisPhase.ITERATIVE: IterativeAnalysisResult,
    AnalysisPhase.CONSOLIDATION: ConsolidationResult,
}


# --- Unified stored shape -----------------------------------------------------

class Analysis(BaseModel):
    """Stored analysis — superset of every phase response."""
    model_config = ConfigDict(extra="ignore")

    key_concepts: list[str] = Field(default_factory=list)
    pml_formalizations: list[PMLFormalization] = Field(default_factory=list)
    proposed_axioms: list[ProposedAxiom] = Field(default_factory=list)
    axiom_updates: list[AxiomUpdate] = Field(default_factory=list)
    dialectical_patterns: list[DialecticalPattern] = Field(default_factory=list)
    graph_data: GraphData | None = None
    updated_global_concepts: list[str] | None = None
    updated_graph_data: GraphData | None = None


def parse_analysis(payload: dict, phase: AnalysisPhase) -> Analysis:
    """Validate a raw payload against the phase model, return unified Analysis.

    Raises pydantic.ValidationError on shape mismatch.
    """
    result = RESPONSE_MODELS[phase].model_validate(payload)
    return Analysis.model_validate(result.model_dump())
