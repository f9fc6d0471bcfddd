"""File-drop watcher: polls an input directory and ingests what lands there.

Each matching file is handed to :meth:`IngestionOrchestrator.submit`,
the same entry point used by uploads. When its run finishes the file is
moved to the *processed* directory (READY) or the *error* directory
(anything else). At most ``max_concurrent`` files are in flight; the
rest wait in the pool's queue.
"""

from __future__ import annotations

import logging
import re
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from docrag.config import settings
from docrag.ingestion.models import DocumentStatus

if TYPE_CHECKING:
    from docrag.ingestion.orchestrator import IngestionOrchestrator

logger = logging.getLogger(__name__)


class FileDropWatcher:
    """Scheduled poll loop feeding files to the orchestrator.

    Parameters
    ----------
    orchestrator:
        Receives every discovered file.
    input_dir / processed_dir / error_dir:
        Directories to scan and to relocate finished files to. Created
        when missing.
    interval:
        Seconds between scans.
    initial_delay:
        Seconds before the first scan after :meth:`start`.
    pattern:
        Regex matched (case-insensitively) against the file name.
    max_concurrent:
        Ceiling on files processed at the same time.
    """

    def __init__(
        self,
        orchestrator: IngestionOrchestrator,
        *,
        input_dir: Path = settings.file_polling_input_dir,
        processed_dir: Path = settings.file_polling_processed_dir,
        error_dir: Path = settings.file_polling_error_dir,
        interval: float = settings.file_polling_interval,
        initial_delay: float = settings.file_polling_initial_delay,
        pattern: str = settings.file_polling_pattern,
        max_concurrent: int = settings.file_polling_max_concurrent,
    ) -> None:
        self.orchestrator = orchestrator
        self.input_dir = Path(input_dir).expanduser()
        self.processed_dir = Path(processed_dir).expanduser()
        self.error_dir = Path(error_dir).expanduser()
        self.interval = interval
        self.initial_delay = initial_delay
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.max_concurrent = max_concurrent

        self._executor = ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="file-drop")
        self._in_flight: set[Path] = set()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # -- scanning -------------------------------------------------------------

    def ensure_directories(self) -> None:
        for directory in (self.input_dir, self.processed_dir, self.error_dir):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory %s", directory)

    def matches(self, path: Path) -> bool:
        return path.is_file() and self.pattern.fullmatch(path.name) is not None

    def scan(self) -> list[Path]:
        """Matching files in the input directory that are not already queued."""
        if not self.input_dir.is_dir():
            return []
        with self._lock:
            in_flight = set(self._in_flight)
        return sorted(p for p in self.input_dir.iterdir() if p not in in_flight and self.matches(p))

    def poll_once(self) -> list[Future[bool]]:
        """Queue every newly discovered file; returns one future per file."""
        futures: list[Future[bool]] = []
        for path in self.scan():
            with self._lock:
                self._in_flight.add(path)
            logger.info("New file detected: %s", path.name)
            futures.append(self._executor.submit(self._process, path))
        return futures

    # -- per-file work --------------------------------------------------------

    def _process(self, path: Path) -> bool:
        succeeded = False
        try:
            content = path.read_bytes()
            record = self.orchestrator.submit(path.name, content).result()
            succeeded = record.status is DocumentStatus.READY
            if not succeeded:
                logger.error("Processing %s failed: %s", path.name, record.error_message)
        except Exception:
            logger.exception("Processing %s failed", path.name)

        try:
            destination = self._relocate(path, self.processed_dir if succeeded else self.error_dir)
            logger.info("Moved %s to %s", path.name, destination.parent)
        except OSError:
            logger.exception("Could not move %s out of the input directory", path)
        finally:
            with self._lock:
                self._in_flight.discard(path)
        return succeeded

    @staticmethod
    def _relocate(path: Path, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / path.name
        shutil.move(str(path), str(destination))
        return destination

    # -- lifecycle ------------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self.ensure_directories()
        logger.info(
            "Watching %s every %.1fs (processed: %s, errors: %s, max concurrent: %d)",
            self.input_dir,
            self.interval,
            self.processed_dir,
            self.error_dir,
            self.max_concurrent,
        )
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="file-drop-poller", daemon=True)
        self._thread.start()

    def stop(self, wait: bool = True) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 5 if wait else 0)
            self._thread = None
        self._executor.shutdown(wait=wait)

    def _loop(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Polling %s failed", self.input_dir)
            self._stop.wait(self.interval)
