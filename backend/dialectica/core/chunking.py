"""Chunker — splits document text into fixed-size sequential chunks.

Invariants:
    - "".join(chunks) == text (no gaps, no overlap)
    - Every chunk has len <= chunk_size; only the last may be shorter
    - Empty text yields an empty list; no chunk is ever empty otherwise
"""

from dialectica.core.domain_types import CHUNK_SIZE


def split_into_chunks(text: str, chunk_size: int = CHUNK_SIZE) -> list[str]:
    """Split text into ordered, non-overlapping chunks of chunk_size chars."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def chunk_label(index: int, total: int) -> str:
    """Human label for a chunk, 1-based: 'Chunk 2/5'."""
    return f"Chunk {index + 1}/{total}"
