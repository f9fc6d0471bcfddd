"""
Retrieval: vector search, prompt assembly and grounded answers.

The vector store sits behind :class:`VectorStoreBase` so that ingestion
and querying never need to know which database is backing them.

Public surface
--------------
- :class:`RagQueryService`: question in, :class:`QueryResult` out.
- :class:`VectorStoreBase`: abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorStore`: default Chroma backend.
- :class:`MetadataFilter`, :class:`Source`, :class:`QueryResult`: data models.
"""

from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import MetadataFilter, QueryResult, Source
from docrag.retrieval.query_service import RagQueryService

__all__ = [
    "ChromaVectorStore",
    "MetadataFilter",
    "QueryResult",
    "RagQueryService",
    "Source",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docrag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
