"""Rebuild a per-document view from the vector store's own metadata."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from docrag.config import settings
from docrag.ingestion.models import IndexSummary

if TYPE_CHECKING:
    from docrag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def summarize_index(store: VectorStoreBase, *, page_size: int = settings.delete_page_size) -> IndexSummary:
    """Count chunks per filename across the whole collection.

    Points without a ``filename`` are counted in ``total_chunks`` only.
    The first ``upload_timestamp`` seen for a filename is reported.
    """
    counts: Counter[str] = Counter()
    timestamps: dict[str, int] = {}
    total = 0
    for point in store.iter_points(page_size=page_size):
        total += 1
        meta = point.get("metadata") or {}
        filename = meta.get("filename")
        if not filename:
            continue
        counts[filename] += 1
        timestamp = meta.get("upload_timestamp")
        if timestamp is not None and filename not in timestamps:
            timestamps[filename] = int(timestamp)

    logger.info("Found %d documents (%d chunks) in the vector store", len(counts), total)
    return IndexSummary(
        total_documents=len(counts),
        total_chunks=total,
        documents=dict(counts),
        timestamps=timestamps,
    )
