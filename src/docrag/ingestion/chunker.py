"""Character-based splitting of extracted text into overlapping chunks."""

from __future__ import annotations

from typing import Any

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

# Paragraph, then line, then sentence, then word, then character boundaries.
SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


def build_splitter(chunk_size: int = 300, chunk_overlap: int = 50) -> RecursiveCharacterTextSplitter:
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=SEPARATORS,
    )


def chunk_text(
    text: str,
    metadata: dict[str, Any],
    chunk_size: int = 300,
    chunk_overlap: int = 50,
) -> list[Document]:
    """Split *text* into overlapping chunks, each carrying a copy of *metadata*.

    Parameters
    ----------
    text:
        Extracted plain text of one document.
    metadata:
        Attached to every chunk (``filename`` and ``upload_timestamp``).
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[Document]
        Chunks in document order. Identical input always yields identical chunks.
    """
    splitter = build_splitter(chunk_size, chunk_overlap)
    return [
        Document(page_content=piece, metadata=dict(metadata))
        for piece in splitter.split_text(text)
    ]
