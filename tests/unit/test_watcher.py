"""Unit tests for the file-drop watcher."""

from __future__ import annotations

import threading
import time
from concurrent.futures import wait
from pathlib import Path

import pytest
from fakes import EMBEDDING_DIM, FakeVectorStore, make_text
from langchain_core.embeddings import DeterministicFakeEmbedding

from docrag.ingestion.models import DocumentStatus
from docrag.ingestion.orchestrator import IngestionOrchestrator
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.ingestion.registry import StatusRegistry
from docrag.ingestion.watcher import FileDropWatcher


@pytest.fixture()
def dirs(tmp_path: Path) -> dict[str, Path]:
    return {
        "input_dir": tmp_path / "in",
        "processed_dir": tmp_path / "done",
        "error_dir": tmp_path / "failed",
    }


def _watcher(orchestrator: IngestionOrchestrator, dirs: dict[str, Path], **kwargs) -> FileDropWatcher:
    options = {"interval": 0.05, "initial_delay": 0.0, "max_concurrent": 3}
    options.update(kwargs)
    watcher = FileDropWatcher(orchestrator, **dirs, **options)
    watcher.ensure_directories()
    return watcher


def test_ensure_directories_creates_all(orchestrator: IngestionOrchestrator, dirs: dict[str, Path]) -> None:
    _watcher(orchestrator, dirs)
    assert all(d.is_dir() for d in dirs.values())


def test_success_and_failure_are_relocated(orchestrator: IngestionOrchestrator, dirs: dict[str, Path]) -> None:
    watcher = _watcher(orchestrator, dirs)
    (dirs["input_dir"] / "good.txt").write_text(make_text(800))
    (dirs["input_dir"] / "empty.txt").write_bytes(b"")
    try:
        futures = watcher.poll_once()
        done, _ = wait(futures, timeout=5)
        outcomes = sorted(f.result() for f in done)
    finally:
        watcher.stop()

    assert outcomes == [False, True]
    assert (dirs["processed_dir"] / "good.txt").exists()
    assert (dirs["error_dir"] / "empty.txt").exists()
    assert list(dirs["input_dir"].iterdir()) == []
    assert orchestrator.status("good.txt").status is DocumentStatus.READY
    assert orchestrator.status("empty.txt").status is DocumentStatus.ERROR


def test_non_matching_files_are_ignored(orchestrator: IngestionOrchestrator, dirs: dict[str, Path]) -> None:
    watcher = _watcher(orchestrator, dirs)
    (dirs["input_dir"] / "photo.png").write_bytes(b"\x89PNG")
    (dirs["input_dir"] / "nested").mkdir()
    (dirs["input_dir"] / "REPORT.TXT").write_text(make_text(300))
    try:
        assert [p.name for p in watcher.scan()] == ["REPORT.TXT"]
        wait(watcher.poll_once(), timeout=5)
    finally:
        watcher.stop()
    assert (dirs["input_dir"] / "photo.png").exists()
    assert orchestrator.status("photo.png") is None


def test_relocation_overwrites_existing_destination(
    orchestrator: IngestionOrchestrator, dirs: dict[str, Path]
) -> None:
    watcher = _watcher(orchestrator, dirs)
    (dirs["processed_dir"] / "good.txt").write_text("old copy")
    (dirs["input_dir"] / "good.txt").write_text(make_text(500))
    try:
        wait(watcher.poll_once(), timeout=5)
    finally:
        watcher.stop()
    assert (dirs["processed_dir"] / "good.txt").read_text() == make_text(500)


def test_concurrency_is_capped(store: FakeVectorStore, dirs: dict[str, Path]) -> None:
    lock = threading.Lock()
    active = {"now": 0, "peak": 0}

    def extractor(path: Path) -> str:
        with lock:
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
        time.sleep(0.05)
        with lock:
            active["now"] -= 1
        return path.read_text()

    pipeline = IngestionPipeline(
        DeterministicFakeEmbedding(size=EMBEDDING_DIM), store, extractor=extractor, batch_size=10
    )
    orchestrator = IngestionOrchestrator(pipeline, store, StatusRegistry(), max_workers=8)
    watcher = _watcher(orchestrator, dirs, max_concurrent=2)
    for i in range(6):
        (dirs["input_dir"] / f"doc-{i}.txt").write_text(make_text(400))
    try:
        futures = watcher.poll_once()
        done, not_done = wait(futures, timeout=10)
    finally:
        watcher.stop()
        orchestrator.shutdown()

    assert not not_done
    assert all(f.result() for f in done)
    assert active["peak"] <= 2
    assert len(list(dirs["processed_dir"].iterdir())) == 6


def test_files_in_flight_are_not_queued_twice(
    store: FakeVectorStore, dirs: dict[str, Path]
) -> None:
    gate = threading.Event()

    def extractor(path: Path) -> str:
        gate.wait(timeout=5)
        return path.read_text()

    pipeline = IngestionPipeline(DeterministicFakeEmbedding(size=EMBEDDING_DIM), store, extractor=extractor)
    orchestrator = IngestionOrchestrator(pipeline, store, StatusRegistry())
    watcher = _watcher(orchestrator, dirs)
    (dirs["input_dir"] / "slow.txt").write_text(make_text(300))
    try:
        first = watcher.poll_once()
        second = watcher.poll_once()
        gate.set()
        wait(first, timeout=5)
    finally:
        watcher.stop()
        orchestrator.shutdown()
    assert len(first) == 1
    assert second == []


def test_background_loop_picks_up_files(orchestrator: IngestionOrchestrator, dirs: dict[str, Path]) -> None:
    watcher = _watcher(orchestrator, dirs)
    watcher.start()
    try:
        (dirs["input_dir"] / "late.txt").write_text(make_text(500))
        deadline = time.monotonic() + 5
        target = dirs["processed_dir"] / "late.txt"
        while not target.exists() and time.monotonic() < deadline:
            time.sleep(0.05)
    finally:
        watcher.stop()
    assert target.exists()
