"""Session State — tests for derived chunk properties.

Invariants:
    - text_chunks follows the document text and chunk size
    - chunks_remaining never goes negative
    - previous_analysis is the last history entry
"""

from dialectica.core.session_state import SessionState
from dialectica.schemas.analysis import Analysis


def test_empty_state_has_no_chunks():
    state = SessionState()
    assert not state.has_document
    assert state.text_chunks == []
    assert state.total_chunks == 0
    assert state.previous_analysis is None


def test_chunks_follow_document_and_size():
    state = SessionState(document_text="a" * 25, chunk_size=10)
    assert [len(c) for c in state.text_chunks] == [10, 10, 5]
    state.chunk_size = 5
    assert state.total_chunks == 5
    state.document_text = "b" * 7
    assert state.text_chunks == ["bbbbb", "bb"]


def test_chunks_remaining():
    state = SessionState(document_text="a" * 25, chunk_size=10, current_chunk_index=2)
    assert state.chunks_remaining == 1
    state.current_chunk_index = 3
    assert state.chunks_remaining == 0


def test_previous_analysis_is_latest_entry():
    first, second = Analysis(key_concepts=["a"]), Analysis(key_concepts=["b"])
    state = SessionState(analysis_history=[first, second])
    assert state.previous_analysis is second
