"""Axiom Store — tests for proposal/update merging and id minting.

Invariants:
    - Proposals become MATERIAL axioms with fresh sequential ids and a Created entry
    - Updates change status/conclusion of known axioms and append labelled history
    - Unknown ids are ignored; applying them changes nothing
    - Ids are never reused, including after restoring from a snapshot
    - list_active() hides STALE axioms; list_all() does not
"""

import pytest

from dialectica.core.axiom_store import Axiom, AxiomStore
from dialectica.core.domain_types import AxiomStatus
from dialectica.schemas.analysis import Analysis, AxiomUpdate, ProposedAxiom


def _proposal(conclusion):
    return ProposedAxiom(
        premises=["p1", "p2"], conclusion=conclusion,
        rationale="r", polarity="compressive",
    )


def _update(axiom_id, status=None, rationale="changed", refined=None):
    return AxiomUpdate(
        axiom_id=axiom_id, new_status=status,
        modification_rationale=rationale, refined_conclusion=refined,
    )


# -- Proposals -----------------------------------------------------------------

def test_proposals_get_sequential_ids():
    store = AxiomStore()
    created = store.apply_proposals([_proposal("a"), _proposal("b")], "Global")
    assert [a.id for a in created] == ["A1", "A2"]
    assert all(a.status == AxiomStatus.MATERIAL for a in created)
    assert created[0].history == ["[Global] Created"]
    assert created[0].premises == ["p1", "p2"]


def test_ids_monotonic_across_merges():
    store = AxiomStore()
    store.apply_proposals([_proposal("a")], "Global")
    store.apply_proposals([_proposal("b"), _proposal("c")], "Chunk 1/2")
    assert [a.id for a in store] == ["A1", "A2", "A3"]


# -- Updates -------------------------------------------------------------------

def test_update_changes_status_and_conclusion():
    store = AxiomStore()
    store.apply_proposals([_proposal("a")], "Global")
    applied = store.apply_updates(
        [_update("A1", AxiomStatus.REFINED, "sharpened", refined="a'")], "Chunk 1/3",
    )
    axiom = store.get("A1")
    assert applied == 1
    assert axiom.status == AxiomStatus.REFINED
    assert axiom.conclusion == "a'"
    assert axiom.history == ["[Global] Created", "[Chunk 1/3] sharpened"]


def test_update_without_status_keeps_status():
    store = AxiomStore()
    store.apply_proposals([_proposal("a")], "Global")
    store.apply_updates([_update("A1", None, "noted")], "Chunk 1/3")
    assert store.get("A1").status == AxiomStatus.MATERIAL
    assert store.get("A1").conclusion == "a"


def test_unknown_update_is_ignored():
    store = AxiomStore()
    store.apply_proposals([_proposal("a")], "Global")
    before = store.to_list()
    assert store.apply_updates([_update("A42", AxiomStatus.STALE)], "Chunk 1/3") == 0
    assert store.to_list() == before


def test_merge_applies_updates_before_proposals():
    store = AxiomStore()
    analysis = Analysis(
        proposed_axioms=[_proposal("new")],
        axiom_updates=[_update("A1", AxiomStatus.STALE, "targets the new proposal")],
    )
    created, updated = store.merge(analysis, "Chunk 1/1")
    assert (created, updated) == (1, 0)
    assert store.get("A1").status == AxiomStatus.MATERIAL


# -- Views ---------------------------------------------------------------------

def test_stale_axioms_excluded_from_active():
    store = AxiomStore()
    store.apply_proposals([_proposal("a"), _proposal("b")], "Global")
    store.apply_updates([_update("A1", AxiomStatus.STALE)], "Hermeneutic Reflection")
    assert [a.id for a in store.list_active()] == ["A2"]
    assert [a.id for a in store.list_all()] == ["A1", "A2"]
    assert len(store) == 2


# -- Snapshot ------------------------------------------------------------------

def test_from_list_restores_id_counter():
    store = AxiomStore()
    store.apply_proposals([_proposal("a"), _proposal("b"), _proposal("c")], "Global")
    restored = AxiomStore.from_list(store.to_list())
    created = restored.apply_proposals([_proposal("d")], "Chunk 1/1")
    assert created[0].id == "A4"


def test_from_list_ignores_non_standard_ids_for_counter():
    restored = AxiomStore.from_list([
        {"id": "custom", "conclusion": "x"},
        {"id": "A5", "conclusion": "y", "status": "Formal"},
    ])
    assert restored.get("A5").status == AxiomStatus.FORMAL
    assert restored.apply_proposals([_proposal("z")], "Global")[0].id == "A6"


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        AxiomStore([
            Axiom("A1", [], "x", "r"),
            Axiom("A1", [], "y", "r"),
        ])


def test_to_dict_is_json_safe():
    axiom = Axiom("A1", ["p"], "c", "r", status="Refined")
    assert axiom.status == AxiomStatus.REFINED
    assert axiom.to_dict()["status"] == "Refined"
