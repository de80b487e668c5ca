"""Analysis Tool Schemas — Anthropic Tool Use format for structured analysis output.

Invariants:
    - One tool (record_analysis) per request; its input_schema depends on phase
    - global: requires graph_data, no axiom_updates
    - iterative: adds axiom_updates
    - consolidation: adds axiom_updates, updated_global_concepts, updated_graph_data
    - new_status enum mirrors AxiomStatus values

Design Decisions:
    - Forced tool_choice over free-text JSON: the API returns a parsed object;
      the client keeps a text fallback for models that answer in prose
    - Hand-written schemas (not model_json_schema()): no $defs/$ref in tool input
"""

from dialectica.core.domain_types import AnalysisPhase, AxiomStatus

TOOL_NAME = "record_analysis"

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

_PML_FORMALIZATIONS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "concept": {"type": "string"},
            "formalization": {"type": "string"},
            "explanation": {"type": "string"},
        },
        "required": ["concept", "formalization", "explanation"],
    },
}

_PROPOSED_AXIOMS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "premises": _STRING_LIST,
            "conclusion": {"type": "string"},
            "rationale": {"type": "string"},
            "polarity": {"type": "string", "enum": ["compressive", "expansive"]},
        },
        "required": ["premises", "conclusion", "rationale", "polarity"],
    },
}

_DIALECTICAL_PATTERNS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "pattern": {"type": "string"},
            "concepts": _STRING_LIST,
            "description": {"type": "string"},
        },
        "required": ["pattern", "concepts", "description"],
    },
}

_GRAPH_DATA = {
    "type": "object",
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"id": {"type": "string"}},
                "required": ["id"],
            },
        },
        "links": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "label": {"type": "string"},
                },
                "required": ["source", "target"],
            },
        },
    },
    "required": ["nodes", "links"],
}

_AXIOM_UPDATES = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "axiom_id": {"type": "string"},
            "new_status": {
                "type": "string",
                "enum": [s.value for s in AxiomStatus],
            },
            "modification_rationale": {"type": "string"},
            "refined_conclusion": {"type": "string"},
        },
        "required": ["axiom_id", "modification_rationale"],
    },
}

_DESCRIPTIONS: dict[AnalysisPhase, str] = {
    AnalysisPhase.GLOBAL: (
        "Records the whole-document analysis: key concepts, PML formalizations, "
        "seed axioms, dialectical patterns and the concept graph."
    ),
    AnalysisPhase.ITERATIVE: (
        "Records the analysis of one text chunk. Prefer axiom_updates over "
        "proposed_axioms; only propose genuinely new structure."
    ),
    AnalysisPhase.CONSOLIDATION: (
        "Records the hermeneutic reflection: merges redundant axioms via "
        "axiom_updates and optionally refines the global concepts and graph."
    ),
}


def build_input_schema(phase: AnalysisPhase) -> dict:
    """JSON schema constraining the analysis for the given phase."""
    properties = {
        "key_concepts": _STRING_LIST,
        "pml_formalizations": _PML_FORMALIZATIONS,
        "proposed_axioms": _PROPOSED_AXIOMS,
        "dialectical_patterns": _DIALECTICAL_PATTERNS,
    }
    required = [
        "key_concepts", "pml_formalizations",
        "proposed_axioms", "dialectical_patterns",
    ]
    if phase == AnalysisPhase.GLOBAL:
        properties["graph_data"] = _GRAPH_DATA
        required.append("graph_data")
    else:
        properties["axiom_updates"] = _AXIOM_UPDATES
    if phase == AnalysisPhase.CONSOLIDATION:
        properties["updated_global_concepts"] = _STRING_LIST
        properties["updated_graph_data"] = _GRAPH_DATA
    return {"type": "object", "properties": properties, "required": required}


def build_analysis_tool(phase: AnalysisPhase) -> dict:
    """The record_analysis tool definition for one request."""
    return {
        "name": TOOL_NAME,
        "description": _DESCRIPTIONS[phase],
        "input_schema": build_input_schema(phase),
    }
