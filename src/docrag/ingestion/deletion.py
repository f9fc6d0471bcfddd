"""Delete every chunk of a document, found by its ``filename`` metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docrag.config import settings
from docrag.ingestion.models import DeleteResult
from docrag.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from docrag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def find_point_ids(store: VectorStoreBase, filename: str, *, page_size: int = settings.delete_page_size) -> list[str]:
    """Collect the ids of all points tagged with *filename*, page by page."""
    filters = [MetadataFilter.equals("filename", filename)]
    return [point["id"] for point in store.iter_points(filters=filters, page_size=page_size)]


def delete_document(
    store: VectorStoreBase,
    filename: str,
    *,
    page_size: int = settings.delete_page_size,
) -> DeleteResult:
    """Remove all chunks of *filename* with one bulk delete.

    Idempotent: a filename with no chunks yields ``not_found`` every time.

    Raises
    ------
    StoreFailure
        When the store cannot be scrolled or the delete is rejected.
    """
    point_ids = find_point_ids(store, filename, page_size=page_size)
    if not point_ids:
        logger.warning("No chunks found for %s", filename)
        return DeleteResult(status="not_found", filename=filename, message="Document not found")

    store.delete(point_ids)
    logger.info("Deleted %s (%d chunks removed)", filename, len(point_ids))
    return DeleteResult(
        status="success",
        filename=filename,
        chunks_deleted=len(point_ids),
        message="Document deleted",
    )
