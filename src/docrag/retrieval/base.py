"""Abstract base class for vector-store backends.

Adding a new backend (Qdrant, Pinecone, Weaviate …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods. Ingestion, deletion and querying are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterator

from docrag.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from langchain_core.documents import Document


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Implementations raise :class:`~docrag.errors.StoreFailure` when the
    backend is unreachable or rejects an operation.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(self, embeddings: list[list[float]], documents: list[Document]) -> list[str]:
        """Store *embeddings* 1:1 with *documents* and return the assigned point ids."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* results for *query_embedding*, best first.

        Each result dict **must** contain:

        * ``"id"`` – point identifier
        * ``"content"`` – the chunk text
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – chunk metadata dict
        """
        ...

    @abstractmethod
    def scroll(
        self,
        *,
        filters: list[MetadataFilter] | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Return one page of points as ``{"id", "metadata"}`` dicts.

        Paging is stable as long as the collection is not modified
        between calls.
        """
        ...

    @abstractmethod
    def delete(self, ids: list[str]) -> None:
        """Delete points by id in a single request."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- helpers --------------------------------------------------------------

    def iter_points(
        self,
        *,
        filters: list[MetadataFilter] | None = None,
        page_size: int = 1000,
    ) -> Iterator[dict[str, Any]]:
        """Yield every matching point, one page at a time.

        Stops after the first page shorter than *page_size*.
        """
        offset = 0
        while True:
            page = self.scroll(filters=filters, limit=page_size, offset=offset)
            yield from page
            if len(page) < page_size:
                return
            offset += page_size
