"""Domain models for document ingestion status."""

from __future__ import annotations

import time
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class DocumentStatus(str, Enum):
    """Lifecycle state of a document in the status registry.

    ``PROCESSING`` is the only non-terminal state.
    """

    PROCESSING = "PROCESSING"
    READY = "READY"
    ERROR = "ERROR"


class DocumentRecord(BaseModel):
    """Ingestion state for one filename.

    Records are immutable; the registry replaces a record on every
    transition so snapshots handed to callers never change under them.

    Attributes
    ----------
    filename:
        Unique key. Re-submitting the same filename overwrites the record.
    status:
        Current :class:`DocumentStatus`.
    chunk_count:
        Number of chunks stored. Only authoritative when ``status`` is READY.
    upload_timestamp:
        Epoch millis at registration; also stamped on every chunk.
    ready_timestamp:
        Epoch millis at the transition to READY.
    error_message:
        Human-readable reason for an ERROR record.
    """

    model_config = {"frozen": True}

    filename: str
    status: DocumentStatus = DocumentStatus.PROCESSING
    chunk_count: int = Field(default=0, ge=0)
    upload_timestamp: int = Field(default_factory=now_ms)
    ready_timestamp: int | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not DocumentStatus.PROCESSING


class IngestionOutcome(BaseModel):
    """What a successful pipeline run produced."""

    filename: str
    chunk_count: int
    embedding_dimension: int
    text_length: int
    point_ids: list[str] = Field(default_factory=list)


class DeleteResult(BaseModel):
    """Outcome of a delete-by-filename request.

    ``not_found`` is a normal outcome, not an error; ``error`` means the
    vector store failed and ``error`` holds the reason.
    """

    status: Literal["success", "not_found", "error"]
    filename: str
    chunks_deleted: int = 0
    message: str = ""
    error: str | None = None


class IndexSummary(BaseModel):
    """Per-filename chunk counts reconstructed from vector-store metadata."""

    total_documents: int = 0
    total_chunks: int = 0
    documents: dict[str, int] = Field(default_factory=dict)
    timestamps: dict[str, int] = Field(default_factory=dict)
