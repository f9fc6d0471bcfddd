"""Fixtures shared by the unit tests."""

from __future__ import annotations

import pytest
from fakes import EMBEDDING_DIM, FakeVectorStore, read_text
from langchain_core.embeddings import DeterministicFakeEmbedding

from docrag.ingestion.orchestrator import IngestionOrchestrator
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.ingestion.registry import StatusRegistry


@pytest.fixture()
def store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=EMBEDDING_DIM)


@pytest.fixture()
def pipeline(embeddings: DeterministicFakeEmbedding, store: FakeVectorStore) -> IngestionPipeline:
    return IngestionPipeline(
        embeddings,
        store,
        extractor=read_text,
        chunk_size=300,
        chunk_overlap=50,
        batch_size=5,
    )


@pytest.fixture()
def registry() -> StatusRegistry:
    return StatusRegistry()


@pytest.fixture()
def orchestrator(pipeline: IngestionPipeline, store: FakeVectorStore, registry: StatusRegistry):
    orch = IngestionOrchestrator(pipeline, store, registry, max_workers=4, page_size=1000)
    yield orch
    orch.shutdown()
