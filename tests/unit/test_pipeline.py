"""Unit tests for the chunking & embedding pipeline."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from fakes import EMBEDDING_DIM, FakeVectorStore, make_text, read_text
from langchain_core.embeddings import DeterministicFakeEmbedding

from docrag.errors import EmbeddingFailure, ExtractionFailure, IngestionFailure, StoreFailure
from docrag.ingestion.pipeline import IngestionPipeline


def _pipeline(store: FakeVectorStore, **kwargs) -> IngestionPipeline:
    options = {
        "extractor": read_text,
        "chunk_size": 300,
        "chunk_overlap": 50,
        "batch_size": 5,
    }
    options.update(kwargs)
    return IngestionPipeline(DeterministicFakeEmbedding(size=EMBEDDING_DIM), store, **options)


class TestSuccess:
    def test_ingest_reports_counts(self, pipeline: IngestionPipeline, store: FakeVectorStore) -> None:
        outcome = pipeline.ingest("report.txt", make_text(5000).encode())
        assert 17 <= outcome.chunk_count <= 25
        assert outcome.embedding_dimension == EMBEDDING_DIM
        assert outcome.text_length == 5000
        assert len(outcome.point_ids) == outcome.chunk_count
        assert store.count_for("report.txt") == outcome.chunk_count

    def test_chunks_carry_filename_and_timestamp(
        self, pipeline: IngestionPipeline, store: FakeVectorStore
    ) -> None:
        pipeline.ingest("report.txt", make_text(1000).encode(), upload_timestamp=1234)
        metas = [p["metadata"] for p in store.points.values()]
        assert metas
        assert all(m == {"filename": "report.txt", "upload_timestamp": 1234} for m in metas)

    def test_chunks_respect_chunk_size(self, pipeline: IngestionPipeline, store: FakeVectorStore) -> None:
        pipeline.ingest("report.txt", make_text(4000).encode())
        assert all(len(p["content"]) <= 300 for p in store.points.values())

    def test_embeds_and_stores_in_batches(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store, batch_size=4)
        outcome = pipeline.ingest("report.txt", make_text(3000).encode())
        expected_batches = -(-outcome.chunk_count // 4)
        assert store.add_calls == expected_batches

    def test_temporary_file_is_removed(self, store: FakeVectorStore) -> None:
        seen: list[Path] = []

        def extractor(path: Path) -> str:
            seen.append(path)
            assert path.read_bytes() == b"some text"
            assert path.name == "notes.txt"
            return path.read_text()

        _pipeline(store, extractor=extractor).ingest("../../notes.txt", b"some text")
        assert len(seen) == 1
        assert not seen[0].exists()
        assert not seen[0].parent.exists()


class TestFailures:
    def test_zero_bytes_fail_extraction(self, pipeline: IngestionPipeline, store: FakeVectorStore) -> None:
        with pytest.raises(ExtractionFailure):
            pipeline.ingest("empty.pdf", b"")
        assert store.points == {}

    def test_temporary_file_removed_on_extraction_failure(self, store: FakeVectorStore) -> None:
        seen: list[Path] = []

        def extractor(path: Path) -> str:
            seen.append(path)
            raise ExtractionFailure("nothing here")

        with pytest.raises(ExtractionFailure, match="nothing here"):
            _pipeline(store, extractor=extractor).ingest("scan.pdf", b"%PDF-1.4")
        assert seen and not seen[0].exists()

    def test_embedding_errors_are_wrapped(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store)
        with patch.object(DeterministicFakeEmbedding, "embed_documents", side_effect=RuntimeError("model down")):
            with pytest.raises(EmbeddingFailure, match="model down"):
                pipeline.ingest("report.txt", make_text(1000).encode())
        assert store.points == {}

    def test_wrong_vector_count_is_an_embedding_failure(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store)
        with patch.object(DeterministicFakeEmbedding, "embed_documents", return_value=[[0.1] * EMBEDDING_DIM]):
            with pytest.raises(EmbeddingFailure):
                pipeline.ingest("report.txt", make_text(2000).encode())

    def test_store_failure_becomes_ingestion_failure(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store)
        with patch.object(store, "add", side_effect=StoreFailure("unreachable")):
            with pytest.raises(IngestionFailure) as excinfo:
                pipeline.ingest("report.txt", make_text(1000).encode())
        assert isinstance(excinfo.value.__cause__, StoreFailure)


class TestPartialCommit:
    @staticmethod
    def _fail_on_second_batch(store: FakeVectorStore):
        real_add = store.add
        calls = {"n": 0}

        def flaky_add(embeddings, documents):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StoreFailure("write rejected")
            return real_add(embeddings, documents)

        return flaky_add

    def test_earlier_batches_stay_by_default(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store, batch_size=3)
        with patch.object(store, "add", side_effect=self._fail_on_second_batch(store)):
            with pytest.raises(IngestionFailure):
                pipeline.ingest("report.txt", make_text(3000).encode())
        assert store.count_for("report.txt") == 3
        assert store.delete_calls == []

    def test_rollback_removes_only_this_run(self, store: FakeVectorStore) -> None:
        pipeline = _pipeline(store, batch_size=3, rollback_on_failure=True)
        pipeline.ingest("other.txt", make_text(500).encode())
        before = dict(store.points)

        with patch.object(store, "add", side_effect=self._fail_on_second_batch(store)):
            with pytest.raises(IngestionFailure):
                pipeline.ingest("report.txt", make_text(3000).encode())

        assert store.count_for("report.txt") == 0
        assert store.points == before
        assert len(store.delete_calls) == 1
        assert len(store.delete_calls[0]) == 3


def test_batch_size_must_be_positive(store: FakeVectorStore) -> None:
    with pytest.raises(ValueError):
        _pipeline(store, batch_size=0)


def test_invalid_splitter_settings_fail_at_construction(store: FakeVectorStore) -> None:
    with pytest.raises(ValueError, match="chunk_overlap"):
        _pipeline(store, chunk_size=100, chunk_overlap=100)
