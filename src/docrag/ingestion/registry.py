"""In-memory status registry: filename → :class:`DocumentRecord`."""

from __future__ import annotations

import logging
import threading

from docrag.ingestion.models import DocumentRecord, DocumentStatus, now_ms

logger = logging.getLogger(__name__)


class StatusRegistry:
    """Thread-safe table of recent ingestion activity.

    The registry is not persisted and is not the source of truth for which
    chunks exist; the vector store is. After a restart it is repopulated
    from store metadata (see :meth:`restore`).
    """

    def __init__(self) -> None:
        self._records: dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def register(self, filename: str) -> DocumentRecord:
        """Create (or overwrite) a PROCESSING record for *filename*."""
        record = DocumentRecord(filename=filename)
        with self._lock:
            self._records[filename] = record
        logger.info("Registered %s as PROCESSING", filename)
        return record

    def mark_ready(self, filename: str, chunk_count: int) -> DocumentRecord | None:
        """Transition *filename* to READY. No-op if the record is gone."""
        with self._lock:
            current = self._records.get(filename)
            if current is None:
                logger.warning("mark_ready: %s is not registered, ignoring", filename)
                return None
            record = current.model_copy(
                update={
                    "status": DocumentStatus.READY,
                    "chunk_count": chunk_count,
                    "ready_timestamp": now_ms(),
                    "error_message": None,
                }
            )
            self._records[filename] = record
        logger.info("%s is READY (%d chunks)", filename, chunk_count)
        return record

    def mark_error(self, filename: str, message: str) -> DocumentRecord | None:
        """Transition *filename* to ERROR. No-op if the record is gone."""
        with self._lock:
            current = self._records.get(filename)
            if current is None:
                logger.warning("mark_error: %s is not registered, ignoring", filename)
                return None
            record = current.model_copy(
                update={"status": DocumentStatus.ERROR, "error_message": message}
            )
            self._records[filename] = record
        logger.error("%s failed: %s", filename, message)
        return record

    def restore(self, filename: str, chunk_count: int, upload_timestamp: int | None) -> bool:
        """Add a READY record for a document found in the vector store.

        Returns ``False`` (and changes nothing) when *filename* is already known.
        """
        record = DocumentRecord(
            filename=filename,
            status=DocumentStatus.READY,
            chunk_count=chunk_count,
            upload_timestamp=upload_timestamp if upload_timestamp is not None else now_ms(),
        )
        with self._lock:
            if filename in self._records:
                return False
            self._records[filename] = record
        return True

    def get(self, filename: str) -> DocumentRecord | None:
        with self._lock:
            return self._records.get(filename)

    def get_all(self) -> dict[str, DocumentRecord]:
        """Point-in-time copy of every record."""
        with self._lock:
            return dict(self._records)

    def remove(self, filename: str) -> bool:
        with self._lock:
            removed = self._records.pop(filename, None) is not None
        if removed:
            logger.info("Removed %s from the status registry", filename)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, filename: object) -> bool:
        with self._lock:
            return filename in self._records
