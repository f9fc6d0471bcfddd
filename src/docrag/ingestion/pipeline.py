"""Chunking & embedding pipeline: raw bytes in, stored chunks out.

Steps, each of which can fail the run:

1. write the bytes to a scoped temporary directory (always removed),
2. extract plain text,
3. split into overlapping chunks stamped with ``filename`` and
   ``upload_timestamp``,
4. embed and store in batches of ``batch_size``.

Batches stored before a failing batch stay in the vector store unless
``rollback_on_failure`` is set, in which case exactly the points written
by this run are deleted again.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from docrag.config import settings
from docrag.errors import EmbeddingFailure, ExtractionFailure, IngestionFailure, StoreFailure
from docrag.ingestion.chunker import build_splitter, chunk_text
from docrag.ingestion.extractor import NO_TEXT_MESSAGE, extract_text
from docrag.ingestion.models import IngestionOutcome, now_ms

if TYPE_CHECKING:
    from langchain_core.documents import Document
    from langchain_core.embeddings import Embeddings

    from docrag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Turn one document into embedded chunks in the vector store.

    Parameters
    ----------
    embeddings:
        LangChain embedding model; must be the one used for querying.
    store:
        Target vector store.
    extractor:
        Callable mapping a file path to plain text, raising
        :class:`ExtractionFailure` when there is none.
    chunk_size / chunk_overlap:
        Splitter configuration in characters.
    batch_size:
        Chunks per embed-and-store round trip.
    rollback_on_failure:
        Delete this run's already-stored points when a later batch fails.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: VectorStoreBase,
        *,
        extractor: Callable[[Path], str] = extract_text,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        batch_size: int = settings.embed_batch_size,
        rollback_on_failure: bool = settings.ingest_rollback_on_failure,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        # Invalid splitter settings fail here, not per document
        build_splitter(chunk_size, chunk_overlap)
        self.embeddings = embeddings
        self.store = store
        self.extractor = extractor
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.batch_size = batch_size
        self.rollback_on_failure = rollback_on_failure

    def ingest(
        self,
        filename: str,
        content: bytes,
        *,
        upload_timestamp: int | None = None,
    ) -> IngestionOutcome:
        """Run the full pipeline for one document.

        Raises
        ------
        IngestionFailure
            Or one of its subclasses, with a user-readable message.
        """
        logger.info("Ingesting %s (%d bytes)", filename, len(content))
        text = self._extract(filename, content)
        logger.info("Extracted %d characters from %s", len(text), filename)

        metadata = {
            "filename": filename,
            "upload_timestamp": upload_timestamp if upload_timestamp is not None else now_ms(),
        }
        chunks = chunk_text(
            text,
            metadata,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )
        if not chunks:
            raise ExtractionFailure(NO_TEXT_MESSAGE)
        logger.info("Split %s into %d chunks", filename, len(chunks))

        point_ids: list[str] = []
        dimension = 0
        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size
        try:
            for number, start in enumerate(range(0, len(chunks), self.batch_size), 1):
                batch = chunks[start : start + self.batch_size]
                vectors = self._embed(batch, expected_dimension=dimension or None)
                dimension = len(vectors[0])
                point_ids.extend(self._store(vectors, batch))
                logger.info(
                    "  %s: stored batch %d/%d (%d chunks)", filename, number, total_batches, len(batch)
                )
        except IngestionFailure:
            if point_ids:
                self._handle_partial_commit(filename, point_ids)
            raise

        return IngestionOutcome(
            filename=filename,
            chunk_count=len(chunks),
            embedding_dimension=dimension,
            text_length=len(text),
            point_ids=point_ids,
        )

    # -- steps ----------------------------------------------------------------

    def _extract(self, filename: str, content: bytes) -> str:
        if not content:
            raise ExtractionFailure(NO_TEXT_MESSAGE)
        name = Path(filename).name or "upload"
        with tempfile.TemporaryDirectory(prefix="docrag-") as tmp_dir:
            path = Path(tmp_dir) / name
            path.write_bytes(content)
            logger.debug("Wrote %s to temporary file %s", filename, path)
            return self.extractor(path)

    def _embed(self, batch: list[Document], *, expected_dimension: int | None) -> list[list[float]]:
        texts = [doc.page_content for doc in batch]
        try:
            vectors = self.embeddings.embed_documents(texts)
        except Exception as exc:
            raise EmbeddingFailure(f"Embedding model failed: {exc}") from exc

        if len(vectors) != len(texts):
            raise EmbeddingFailure(
                f"Embedding model returned {len(vectors)} vectors for {len(texts)} chunks"
            )
        dimensions = {len(vector) for vector in vectors}
        if expected_dimension is not None:
            dimensions.add(expected_dimension)
        if len(dimensions) != 1 or 0 in dimensions:
            raise EmbeddingFailure(f"Embedding model returned inconsistent dimensions: {sorted(dimensions)}")
        return vectors

    def _store(self, vectors: list[list[float]], batch: list[Document]) -> list[str]:
        try:
            return self.store.add(vectors, batch)
        except StoreFailure as exc:
            raise IngestionFailure(f"Could not store chunks: {exc}") from exc

    def _handle_partial_commit(self, filename: str, point_ids: list[str]) -> None:
        if not self.rollback_on_failure:
            logger.warning(
                "%s failed after %d chunks were stored; they remain in the vector store",
                filename,
                len(point_ids),
            )
            return
        try:
            self.store.delete(point_ids)
            logger.info("Rolled back %d chunks of %s", len(point_ids), filename)
        except StoreFailure:
            logger.exception("Rollback of %d chunks of %s failed", len(point_ids), filename)
