"""Embedding model factory."""

from __future__ import annotations

from langchain_huggingface import HuggingFaceEmbeddings

from docrag.config import settings


def get_embedding_function(model_name: str | None = None) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function.

    The same instance must serve ingestion and querying so that question
    vectors live in the same space as chunk vectors.
    """
    return HuggingFaceEmbeddings(
        model_name=model_name or settings.embedding_model,
        encode_kwargs={"normalize_embeddings": True},
    )
