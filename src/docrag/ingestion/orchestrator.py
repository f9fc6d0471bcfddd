"""Ingestion orchestrator: status-tracked, fire-and-forget document runs.

Per-filename state machine::

    submit ──► PROCESSING ──► READY   (pipeline success)
                         └──► ERROR   (any failure, message recorded)

    delete ──► record removed + chunks deleted from the vector store

Runs for different documents execute concurrently on a worker pool;
the steps of one run are strictly sequential. Nothing raised inside a
run escapes: every failure ends in ``mark_error``.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from docrag.config import settings
from docrag.errors import IngestionFailure, StoreFailure
from docrag.ingestion.deletion import delete_document
from docrag.ingestion.inventory import summarize_index
from docrag.ingestion.models import DeleteResult, DocumentRecord, DocumentStatus, IndexSummary
from docrag.ingestion.registry import StatusRegistry

if TYPE_CHECKING:
    from docrag.ingestion.pipeline import IngestionPipeline
    from docrag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


class IngestionOrchestrator:
    """Entry point for uploads, file-drop ingestion and deletion.

    Parameters
    ----------
    pipeline:
        The chunking & embedding pipeline.
    store:
        Vector store used for deletion and registry rebuilds.
    registry:
        Shared status registry; a fresh one is created when omitted.
    max_workers:
        Size of the worker pool running submitted documents.
    page_size:
        Page size used when scanning the store by metadata.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        store: VectorStoreBase,
        registry: StatusRegistry | None = None,
        *,
        max_workers: int = settings.ingest_max_workers,
        page_size: int = settings.delete_page_size,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.registry = registry if registry is not None else StatusRegistry()
        self.page_size = page_size
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingest")

    # -- ingestion ------------------------------------------------------------

    def submit(self, filename: str, content: bytes) -> Future[DocumentRecord]:
        """Register *filename* as PROCESSING and schedule its run.

        Returns immediately. The future resolves to the final record and
        never raises; callers may also just poll the registry.
        If the pool refuses the run (e.g. after :meth:`shutdown`) the record
        is marked ERROR and the pool's ``RuntimeError`` is re-raised.
        """
        record = self.registry.register(filename)
        try:
            return self._executor.submit(self._run, filename, content, record.upload_timestamp)
        except RuntimeError as exc:
            logger.error("Could not schedule ingestion of %s: %s", filename, exc)
            self.registry.mark_error(filename, str(exc) or type(exc).__name__)
            raise

    def ingest(self, filename: str, content: bytes) -> DocumentRecord:
        """Same as :meth:`submit` but runs in the caller's thread."""
        record = self.registry.register(filename)
        return self._run(filename, content, record.upload_timestamp)

    def _run(self, filename: str, content: bytes, upload_timestamp: int) -> DocumentRecord:
        try:
            outcome = self.pipeline.ingest(filename, content, upload_timestamp=upload_timestamp)
        except IngestionFailure as exc:
            logger.error("Ingestion of %s failed: %s", filename, exc)
            message = str(exc) or type(exc).__name__
        except Exception as exc:
            logger.exception("Unexpected error while ingesting %s", filename)
            message = str(exc) or type(exc).__name__
        else:
            logger.info(
                "Ingested %s: %d chunks, embedding dimension %d",
                filename,
                outcome.chunk_count,
                outcome.embedding_dimension,
            )
            record = self.registry.mark_ready(filename, outcome.chunk_count)
            if record is None:
                record = DocumentRecord(
                    filename=filename,
                    status=DocumentStatus.READY,
                    chunk_count=outcome.chunk_count,
                    upload_timestamp=upload_timestamp,
                )
            return record

        message = message or UNKNOWN_ERROR
        record = self.registry.mark_error(filename, message)
        if record is None:
            record = DocumentRecord(
                filename=filename,
                status=DocumentStatus.ERROR,
                upload_timestamp=upload_timestamp,
                error_message=message,
            )
        return record

    # -- deletion -------------------------------------------------------------

    def delete(self, filename: str) -> DeleteResult:
        """Delete all chunks of *filename* and forget its status record.

        A store failure is reported as ``status="error"``; the record is
        kept in that case so the document stays visible.
        """
        try:
            result = delete_document(self.store, filename, page_size=self.page_size)
        except StoreFailure as exc:
            logger.exception("Deleting %s failed", filename)
            return DeleteResult(
                status="error",
                filename=filename,
                message="Error while deleting the document",
                error=str(exc),
            )
        self.registry.remove(filename)
        return result

    # -- status ---------------------------------------------------------------

    def status(self, filename: str) -> DocumentRecord | None:
        return self.registry.get(filename)

    def statuses(self) -> dict[str, DocumentRecord]:
        return self.registry.get_all()

    def list_indexed_documents(self) -> IndexSummary:
        return summarize_index(self.store, page_size=self.page_size)

    def rebuild_registry(self) -> int:
        """Restore READY records for documents already in the vector store.

        Returns the number of records added.
        """
        summary = self.list_indexed_documents()
        restored = 0
        for filename, chunk_count in summary.documents.items():
            if self.registry.restore(filename, chunk_count, summary.timestamps.get(filename)):
                restored += 1
        logger.info("Restored %d document records from the vector store", restored)
        return restored

    # -- lifecycle ------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> IngestionOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
