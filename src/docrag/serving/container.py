"""Wire the core components together from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from docrag.config import Settings, settings
from docrag.ingestion.embedder import get_embedding_function
from docrag.ingestion.orchestrator import IngestionOrchestrator
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.ingestion.watcher import FileDropWatcher
from docrag.llm import get_text_generator
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.query_service import RagQueryService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the HTTP layer needs, built once at startup."""

    orchestrator: IngestionOrchestrator
    query_service: RagQueryService
    store: VectorStoreBase
    watcher: FileDropWatcher | None = None

    def close(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        self.orchestrator.shutdown()


def build_services(cfg: Settings | None = None) -> Services:
    """Build the production object graph (Chroma, HuggingFace, configured LLM)."""
    from docrag.retrieval.chroma_store import ChromaVectorStore

    cfg = cfg or settings
    embeddings = get_embedding_function(cfg.embedding_model)
    store = ChromaVectorStore(
        cfg.chroma_collection,
        host=cfg.chroma_host,
        port=cfg.chroma_port,
        distance=cfg.chroma_distance,
    )
    pipeline = IngestionPipeline(
        embeddings,
        store,
        chunk_size=cfg.chunk_size,
        chunk_overlap=cfg.chunk_overlap,
        batch_size=cfg.embed_batch_size,
        rollback_on_failure=cfg.ingest_rollback_on_failure,
    )
    orchestrator = IngestionOrchestrator(
        pipeline,
        store,
        max_workers=cfg.ingest_max_workers,
        page_size=cfg.delete_page_size,
    )
    query_service = RagQueryService(embeddings, store, get_text_generator(cfg), top_k=cfg.top_k)

    watcher = None
    if cfg.file_polling_enabled:
        watcher = FileDropWatcher(
            orchestrator,
            input_dir=cfg.file_polling_input_dir,
            processed_dir=cfg.file_polling_processed_dir,
            error_dir=cfg.file_polling_error_dir,
            interval=cfg.file_polling_interval,
            initial_delay=cfg.file_polling_initial_delay,
            pattern=cfg.file_polling_pattern,
            max_concurrent=cfg.file_polling_max_concurrent,
        )
    return Services(orchestrator=orchestrator, query_service=query_service, store=store, watcher=watcher)
