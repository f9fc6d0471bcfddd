"""Chroma adapter: chunk vectors, metadata paging and id-based deletes."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator
from uuid import uuid4

import chromadb

from docrag.config import settings
from docrag.errors import StoreFailure
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def _build_chroma_where(filters: list[MetadataFilter] | None) -> dict[str, Any] | None:
    """Translate filters into a Chroma ``where`` clause (ANDed when several)."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flat_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    # Chroma only stores scalar metadata values
    return {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except StoreFailure:
        raise
    except Exception as exc:
        raise StoreFailure(f"Vector store {operation} failed: {exc}") from exc


class ChromaVectorStore(VectorStoreBase):
    """Vector store backed by a Chroma collection.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance:
        Distance function of the collection (``cosine`` | ``l2`` | ``ip``).
    client:
        Pre-built Chroma client (e.g. ``chromadb.EphemeralClient()``);
        when given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance: str = settings.chroma_distance,
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        self.distance = distance
        with _store_errors("connect"):
            self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": distance},
            )

    # -- VectorStoreBase overrides --------------------------------------------

    def add(self, embeddings: list[list[float]], documents: list[Document]) -> list[str]:
        if len(embeddings) != len(documents):
            raise ValueError(
                f"Got {len(embeddings)} embeddings for {len(documents)} documents"
            )
        if not documents:
            return []
        ids = [uuid4().hex for _ in documents]
        with _store_errors("upsert"):
            self._collection.upsert(
                ids=ids,
                embeddings=embeddings,
                documents=[doc.page_content for doc in documents],
                metadatas=[_flat_metadata(doc.metadata) for doc in documents],
            )
        return ids

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 10,
        filters: list[MetadataFilter] | None = None,
    ) -> list[dict[str, Any]]:
        with _store_errors("query"):
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=k,
                where=_build_chroma_where(filters),
                include=["documents", "metadatas", "distances"],
            )

        hits: list[dict[str, Any]] = []
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for point_id, content, meta, dist in zip(ids, docs, metas, distances):
            hits.append(
                {
                    "id": point_id,
                    "content": content or "",
                    "score": self._to_score(dist),
                    "metadata": dict(meta or {}),
                }
            )
        hits.sort(key=lambda hit: hit["score"], reverse=True)
        return hits

    def scroll(
        self,
        *,
        filters: list[MetadataFilter] | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        with _store_errors("scroll"):
            page = self._collection.get(
                where=_build_chroma_where(filters),
                limit=limit,
                offset=offset,
                include=["metadatas"],
            )
        ids = page.get("ids") or []
        metas = page.get("metadatas") or [None] * len(ids)
        return [{"id": point_id, "metadata": dict(meta or {})} for point_id, meta in zip(ids, metas)]

    def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        with _store_errors("delete"):
            self._collection.delete(ids=ids)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def count(self) -> int:
        with _store_errors("count"):
            return self._collection.count()

    # -- internals ------------------------------------------------------------

    def _to_score(self, distance: float) -> float:
        if self.distance == "cosine":
            return 1.0 - distance
        if self.distance == "ip":
            return -distance
        # L2 distance mapped onto (0, 1].
        return 1.0 / (1.0 + distance)
