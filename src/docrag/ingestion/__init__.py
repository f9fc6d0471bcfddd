"""
Ingestion: extraction, chunking, embedding and storage of documents.

Public surface
--------------
- :class:`IngestionOrchestrator`: submit / delete entry point with status tracking.
- :class:`IngestionPipeline`: extract → split → batch embed-and-store.
- :class:`StatusRegistry`: thread-safe filename → :class:`DocumentRecord` table.
- :class:`FileDropWatcher`: polls a directory and feeds the orchestrator.
- :func:`delete_document`: remove every chunk of a filename.
"""

from docrag.ingestion.deletion import delete_document
from docrag.ingestion.models import DeleteResult, DocumentRecord, DocumentStatus, IndexSummary, IngestionOutcome
from docrag.ingestion.orchestrator import IngestionOrchestrator
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.ingestion.registry import StatusRegistry
from docrag.ingestion.watcher import FileDropWatcher

__all__ = [
    "DeleteResult",
    "DocumentRecord",
    "DocumentStatus",
    "FileDropWatcher",
    "IndexSummary",
    "IngestionOrchestrator",
    "IngestionOutcome",
    "IngestionPipeline",
    "StatusRegistry",
    "delete_document",
]
