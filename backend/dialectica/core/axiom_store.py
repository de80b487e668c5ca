"""Axiom Store — in-memory knowledge base of derived axioms.

Invariants:
    - Axioms are never removed; supersession is expressed as status STALE
    - id never changes after creation; ids are minted A1, A2, ... and never reused
    - history is append-only, one "[label] ..." entry per mutation
    - Updates referencing unknown ids are ignored (no error, no mutation)
    - list_active() excludes STALE; list_all() never does; both keep creation order

Design Decisions:
    - Dataclass + plain methods: pure, deterministic, testable without mocks
    - Updates applied before proposals in merge(): a response can only update
      axioms the model saw in its prompt
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from dialectica.core.domain_types import AxiomStatus
from dialectica.schemas.analysis import Analysis, AxiomUpdate, ProposedAxiom

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^A(\d+)$")


@dataclass
class Axiom:
    """A premises → conclusion statement with provenance."""
    id: str
    premises: list[str]
    conclusion: str
    rationale: str
    status: AxiomStatus = AxiomStatus.MATERIAL
    history: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = AxiomStatus(self.status)

    @property
    def is_stale(self) -> bool:
        return self.status == AxiomStatus.STALE

    def to_dict(self) -> dict:
        """JSON-safe representation (status as its string value)."""
        return {
            "id": self.id,
            "status": self.status.value,
            "premises": list(self.premises),
            "conclusion": self.conclusion,
            "rationale": self.rationale,
            "history": list(self.history),
        }


class AxiomStore:
    """Ordered axiom collection with merge operations for LLM results."""

    def __init__(self, axioms: Iterable[Axiom] = ()):
        self._axioms: list[Axiom] = []
        self._index: dict[str, Axiom] = {}
        self._last_id = 0
        for axiom in axioms:
            self._add(axiom)

    def __len__(self) -> int:
        return len(self._axioms)

    def __iter__(self) -> Iterator[Axiom]:
        return iter(list(self._axioms))

    def get(self, axiom_id: str) -> Axiom | None:
        return self._index.get(axiom_id)

    def list_all(self) -> list[Axiom]:
        """Every axiom, stale included, in creation order."""
        return list(self._axioms)

    def list_active(self) -> list[Axiom]:
        """Axioms eligible for prompting — everything but STALE."""
        return [a for a in self._axioms if not a.is_stale]

    # --- Merge operations -----------------------------------------------------

    def apply_proposals(
        self, proposals: Iterable[ProposedAxiom], label: str,
    ) -> list[Axiom]:
        """Append proposals as MATERIAL axioms with freshly minted ids."""
        created = []
        for proposal in proposals:
            axiom = Axiom(
                id=self._next_id(),
                premises=list(proposal.premises),
                conclusion=proposal.conclusion,
                rationale=proposal.rationale,
                status=AxiomStatus.MATERIAL,
                history=[f"[{label}] Created"],
            )
            self._add(axiom)
            created.append(axiom)
        return created

    def apply_updates(self, updates: Iterable[AxiomUpdate], label: str) -> int:
        """Apply status/conclusion updates to known axioms. Returns count applied."""
        applied = 0
        for update in updates:
            target = self._index.get(update.axiom_id)
            if target is None:
                logger.debug(f"Ignoring update for unknown axiom {update.axiom_id}")
                continue
            if update.new_status is not None:
                target.status = update.new_status
            if update.refined_conclusion:
                target.conclusion = update.refined_conclusion
            target.history.append(f"[{label}] {update.modification_rationale}")
            applied += 1
        return applied

    def merge(self, analysis: Analysis, label: str) -> tuple[int, int]:
        """Apply an analysis' updates then its proposals. Returns (created, updated)."""
        updated = self.apply_updates(analysis.axiom_updates, label)
        created = self.apply_proposals(analysis.proposed_axioms, label)
        return len(created), updated

    # --- Serialization --------------------------------------------------------

    def to_list(self) -> list[dict]:
        return [a.to_dict() for a in self._axioms]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "AxiomStore":
        """Rebuild a store from exported dicts. Duplicate ids raise ValueError."""
        return cls(
            Axiom(
                id=item["id"],
                premises=list(item.get("premises", [])),
                conclusion=item.get("conclusion", ""),
                rationale=item.get("rationale", ""),
                status=item.get("status", AxiomStatus.MATERIAL),
                history=list(item.get("history", [])),
            )
            for item in data
        )

    # --- Internals ------------------------------------------------------------

    def _add(self, axiom: Axiom) -> None:
        if axiom.id in self._index:
            raise ValueError(f"Duplicate axiom id: {axiom.id}")
        self._axioms.append(axiom)
        self._index[axiom.id] = axiom
        match = _ID_PATTERN.match(axiom.id)
        if match:
            self._last_id = max(self._last_id, int(match.group(1)))

    def _next_id(self) -> str:
        self._last_id += 1
        return f"A{self._last_id}"
