"""FastAPI application exposing document ingestion and RAG queries."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from docrag.config import settings
from docrag.errors import DocRagError, StoreFailure
from docrag.ingestion.extractor import is_supported_file
from docrag.ingestion.models import DocumentRecord, IndexSummary
from docrag.retrieval.models import QueryResult
from docrag.serving.container import Services, build_services

logger = logging.getLogger(__name__)


# ── Request schemas ───────────────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user."""

    question: str = ""


# ── Dependencies ──────────────────────────────────────────────────────
def get_services(request: Request) -> Services:
    return request.app.state.services


def create_app(services_factory: Callable[[], Services] = build_services) -> FastAPI:
    """Build the app; services are created on startup and closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = services_factory()
        app.state.services = services
        try:
            services.orchestrator.rebuild_registry()
        except StoreFailure:
            logger.exception("Could not rebuild the status registry from the vector store")
        if services.watcher is not None:
            services.watcher.start()
        try:
            yield
        finally:
            services.close()

    app = FastAPI(
        title="DocRAG API",
        version="0.1.0",
        description="Document ingestion with status tracking and retrieval-augmented answers.",
        lifespan=lifespan,
    )

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    def health(request: Request) -> dict[str, str]:
        """Liveness probe; also reports vector-store reachability once services are up."""
        body = {"status": "ok"}
        services: Services | None = getattr(request.app.state, "services", None)
        if services is not None:
            body["vector_store"] = "up" if services.store.health_check() else "down"
        return body

    @app.post("/api/documents/upload")
    async def upload_document(
        file: UploadFile = File(...),
        services: Services = Depends(get_services),
    ) -> dict:
        """Register the document as PROCESSING and ingest it in the background."""
        filename = file.filename or ""
        content = await file.read()
        logger.info("Received file %s (%d bytes)", filename, len(content))
        if not content:
            raise HTTPException(status_code=400, detail="Empty file")
        if not is_supported_file(filename, settings.supported_extensions):
            raise HTTPException(
                status_code=400,
                detail="Unsupported file type. Use: " + ", ".join(settings.supported_extensions),
            )
        services.orchestrator.submit(filename, content)
        return {
            "message": "Upload complete, the document is being processed",
            "data": {"filename": filename, "size_bytes": len(content), "status": "PROCESSING"},
        }

    @app.get("/api/documents/list", response_model=IndexSummary)
    def list_documents(services: Services = Depends(get_services)) -> IndexSummary:
        try:
            return services.orchestrator.list_indexed_documents()
        except StoreFailure as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.get("/api/documents/status/{filename}", response_model=DocumentRecord)
    def document_status(filename: str, services: Services = Depends(get_services)) -> DocumentRecord:
        record = services.orchestrator.status(filename)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Document not found: {filename}")
        return record

    @app.get("/api/documents/statuses", response_model=dict[str, DocumentRecord])
    def document_statuses(services: Services = Depends(get_services)) -> dict[str, DocumentRecord]:
        return services.orchestrator.statuses()

    @app.delete("/api/documents/{filename}")
    def delete_document(filename: str, services: Services = Depends(get_services)) -> JSONResponse:
        if not filename.strip():
            raise HTTPException(status_code=400, detail="Invalid file name")
        result = services.orchestrator.delete(filename)
        status_code = {"not_found": 404, "error": 500}.get(result.status, 200)
        return JSONResponse(status_code=status_code, content=result.model_dump())

    @app.get("/api/query", response_model=QueryResult)
    def query_get(
        question: str = Query(default=""),
        services: Services = Depends(get_services),
    ) -> QueryResult:
        return _answer(services, question)

    @app.post("/api/query", response_model=QueryResult)
    def query_post(request: QueryRequest, services: Services = Depends(get_services)) -> QueryResult:
        return _answer(services, request.question)

    return app


def _answer(services: Services, question: str) -> QueryResult:
    if not question.strip():
        raise HTTPException(status_code=400, detail="The question must not be empty")
    try:
        return services.query_service.query(question)
    except DocRagError as exc:
        logger.exception("Query failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


app = create_app()


def run() -> None:
    """Console entry point: ``docrag-serve``."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("docrag.serving.app:app", host="0.0.0.0", port=8000)
