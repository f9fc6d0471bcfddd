"""Retrieval-augmented query service.

Usage::

    service = RagQueryService(embeddings, store, generator)
    result = service.query("What does the contract say about renewals?")
    print(result.answer)
    for source in result.sources:
        print(f"{source.score:.2f} {source.filename}")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docrag.config import settings
from docrag.errors import EmbeddingFailure, GenerationFailure
from docrag.retrieval.models import QueryResult, Source
from docrag.retrieval.prompts import build_rag_prompt

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from docrag.llm import TextGenerator
    from docrag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

NO_DOCUMENTS_ANSWER = (
    "I could not find any documents to answer this question. Upload some documents first!"
)
GENERATION_FALLBACK_ANSWER = (
    "An error occurred while generating the answer. The prompt may be too long "
    "or the language model is currently unavailable."
)
UNKNOWN_SOURCE = "unknown"


class RagQueryService:
    """Embed the question, retrieve the top-k chunks, ask the LLM.

    Parameters
    ----------
    embeddings:
        Must be the embedding model used at ingestion time.
    store:
        Vector store to retrieve from.
    generator:
        Language model wrapper.
    top_k:
        Number of chunks retrieved per question.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: VectorStoreBase,
        generator: TextGenerator,
        *,
        top_k: int = settings.top_k,
    ) -> None:
        self.embeddings = embeddings
        self.store = store
        self.generator = generator
        self.top_k = top_k

    def query(self, question: str) -> QueryResult:
        """Answer *question* from the indexed documents.

        Never raises on language-model failure: the answer is replaced by
        a fallback message. Embedding failures raise
        :class:`EmbeddingFailure`; store errors raise :class:`StoreFailure`.
        """
        logger.info("Query received: %s", question)
        try:
            question_embedding = self.embeddings.embed_query(question)
        except Exception as exc:
            raise EmbeddingFailure(f"Could not embed the question: {exc}") from exc
        hits = self.store.similarity_search(question_embedding, k=self.top_k)

        if not hits:
            logger.warning("No chunks found in the vector store")
            return QueryResult(answer=NO_DOCUMENTS_ANSWER, sources=[], question=question, chunks_used=0)

        sources = [self._to_source(hit) for hit in hits]
        for source in sources:
            logger.debug("Score %.4f from %s", source.score, source.filename)
        logger.info("Retrieved %d relevant chunks", len(sources))

        prompt = build_rag_prompt(question, sources)
        logger.debug("Prompt built: %d characters", len(prompt))
        try:
            answer = self.generator.generate(prompt)
            logger.info("Answer generated: %d characters", len(answer))
        except GenerationFailure:
            logger.exception("Language model call failed")
            answer = GENERATION_FALLBACK_ANSWER

        return QueryResult(answer=answer, sources=sources, question=question, chunks_used=len(sources))

    def answer(self, question: str) -> str:
        """Shortcut returning only the answer text."""
        return self.query(question).answer

    @staticmethod
    def _to_source(hit: dict[str, Any]) -> Source:
        meta = hit.get("metadata") or {}
        return Source(
            text=hit.get("content", ""),
            score=float(hit.get("score") or 0.0),
            filename=meta.get("filename") or UNKNOWN_SOURCE,
        )
