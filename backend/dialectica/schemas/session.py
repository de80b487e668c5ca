"""Session Schemas — Pydantic models for the session API and the export file.

Invariants:
    - DocumentLoad.text: non-empty; image mime type must be image/*
    - SessionExport validates a whole session file before anything is committed
    - SessionExport accepts both snake_case keys and the camelCase keys of the
      browser app's export (fileContent, globalAnalysis, ...)
    - Axiom ids in an export are unique

Design Decisions:
    - AliasChoices over a separate legacy model: one validation path for both formats
    - Legacy "AutoIterating" phase mapped before enum validation (it is not a Phase)
"""

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator,
)

from dialectica.core.domain_types import AxiomStatus, Phase, StepKind
from dialectica.schemas.analysis import Analysis, GraphData


# --- Requests -----------------------------------------------------------------

class ImageInput(BaseModel):
    """Base64 image attached to the global analysis."""
    data: str = Field(min_length=1)
    mime_type: str = Field(pattern=r"^image/[\w.+-]+$")


class DocumentLoad(BaseModel):
    """Plain text extracted by the caller, plus a display name."""
    text: str = Field(min_length=1)
    name: str = Field("untitled", max_length=500)
    image: ImageInput | None = None

    @field_validator("text")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text cannot be empty or whitespace")
        return v


# --- Responses ----------------------------------------------------------------

class SessionStatusResponse(BaseModel):
    """Compact view of the orchestrator state."""
    phase: Phase
    document_name: str | None
    current_chunk_index: int
    total_chunks: int
    chunks_since_consolidation: int
    axiom_count: int
    active_axiom_count: int
    history_length: int
    auto_run_active: bool
    last_error: str | None


class AdvanceResponse(SessionStatusResponse):
    step: StepKind


class AnalysisOverview(BaseModel):
    """Global analysis plus every chunk analysis, in chunk order."""
    global_analysis: Analysis | None
    analysis_history: list[Analysis]


# --- Export file --------------------------------------------------------------

class AxiomRecord(BaseModel):
    id: str = Field(min_length=1)
    status: AxiomStatus = AxiomStatus.MATERIAL
    premises: list[str] = Field(default_factory=list)
    conclusion: str = ""
    rationale: str = ""
    history: list[str] = Field(default_factory=list)


class SessionExport(BaseModel):
    """Complete, resumable session — the only persisted format."""
    model_config = ConfigDict(extra="ignore")

    document_text: str | None = Field(
        None, validation_alias=AliasChoices("document_text", "fileContent"),
    )
    document_name: str | None = Field(
        None, validation_alias=AliasChoices("document_name", "fileName"),
    )
    axioms: list[AxiomRecord] = Field(default_factory=list)
    global_analysis: Analysis | None = Field(
        None, validation_alias=AliasChoices("global_analysis", "globalAnalysis"),
    )
    analysis_history: list[Analysis] = Field(
        default_factory=list,
        validation_alias=AliasChoices("analysis_history", "analysisHistory"),
    )
    current_chunk_index: int = Field(
        0, ge=0,
        validation_alias=AliasChoices("current_chunk_index", "currentChunkIndex"),
    )
    phase: Phase = Phase.IDLE
    graph: GraphData | None = Field(
        None, validation_alias=AliasChoices("graph", "graphData"),
    )
    chunks_since_consolidation: int = Field(
        0, ge=0,
        validation_alias=AliasChoices(
            "chunks_since_consolidation", "chunksSinceConsolidation",
        ),
    )

    @field_validator("phase", mode="before")
    @classmethod
    def map_legacy_phase(cls, v):
        if v == "AutoIterating":
            return Phase.GLOBAL_ANALYSIS_COMPLETE
        return v

    @model_validator(mode="after")
    def unique_axiom_ids(self):
        ids = [a.id for a in self.axioms]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate axiom ids: {', '.join(duplicates)}")
        return self
