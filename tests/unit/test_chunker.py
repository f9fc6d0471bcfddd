"""Unit tests for the chunker module."""

import pytest
from fakes import make_text

from docrag.ingestion.chunker import chunk_text

META = {"filename": "test.md", "upload_timestamp": 1}


def test_chunk_text_splits_long_text() -> None:
    """A text longer than chunk_size should be split."""
    chunks = chunk_text("word " * 500, META, chunk_size=256, chunk_overlap=32)
    assert len(chunks) > 1
    assert all(len(c.page_content) <= 256 for c in chunks)


def test_chunk_text_attaches_metadata_copies() -> None:
    """Every chunk gets its own copy of the document metadata."""
    chunks = chunk_text(make_text(1000), META, chunk_size=200, chunk_overlap=20)
    assert all(c.metadata == META for c in chunks)
    chunks[0].metadata["filename"] = "changed"
    assert chunks[1].metadata["filename"] == "test.md"


def test_chunk_text_is_deterministic() -> None:
    text = make_text(5000)
    first = [c.page_content for c in chunk_text(text, META, chunk_size=300, chunk_overlap=50)]
    second = [c.page_content for c in chunk_text(text, META, chunk_size=300, chunk_overlap=50)]
    assert first == second


def test_adjacent_chunks_overlap() -> None:
    text = " ".join(f"w{i}" for i in range(1000))
    chunks = chunk_text(text, META, chunk_size=300, chunk_overlap=50)
    assert len(chunks) > 1
    for left, right in zip(chunks, chunks[1:]):
        tail = left.page_content[-20:]
        assert tail in right.page_content


def test_paragraph_boundaries_are_preferred() -> None:
    text = "First paragraph about cats.\n\nSecond paragraph about dogs."
    chunks = chunk_text(text, META, chunk_size=40, chunk_overlap=0)
    assert [c.page_content for c in chunks] == [
        "First paragraph about cats.",
        "Second paragraph about dogs.",
    ]


def test_chunk_count_for_5000_characters() -> None:
    """~ceil((5000 - 50) / (300 - 50)) = 20 chunks."""
    chunks = chunk_text(make_text(5000), META, chunk_size=300, chunk_overlap=50)
    assert 17 <= len(chunks) <= 25


def test_chunk_text_empty_input() -> None:
    """An empty text should return an empty list."""
    assert chunk_text("", META) == []


def test_overlap_must_be_smaller_than_size() -> None:
    with pytest.raises(ValueError):
        chunk_text("abc", META, chunk_size=50, chunk_overlap=50)
