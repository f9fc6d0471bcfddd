"""Prompt template for grounded question answering.

Keeping the template in one place makes it easy to audit and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docrag.retrieval.models import Source

CHUNK_DELIMITER = "\n\n---\n\n"

NOT_IN_CONTEXT_ANSWER = "I cannot find this information in the uploaded documents."

RAG_TEMPLATE = """\
You are an assistant that answers questions using ONLY the information in the context below.

RULES:
- Answer ONLY with information stated explicitly in the context.
- If the answer is in the context, quote it precisely and completely.
- If the answer is NOT in the context, reply exactly: "{not_found}"
- Do NOT invent, infer, or add outside information.
- Read the WHOLE context carefully before answering.

CONTEXT (from uploaded documents):
{context}

USER QUESTION: {question}

ANSWER (based ONLY on the context above):
"""


def format_context(sources: list[Source]) -> str:
    """Join chunks in the given order, each tagged with its source file."""
    return CHUNK_DELIMITER.join(f"[Source: {s.filename}]\n{s.text}" for s in sources)


def build_rag_prompt(question: str, sources: list[Source]) -> str:
    return RAG_TEMPLATE.format(
        not_found=NOT_IN_CONTEXT_ANSWER,
        context=format_context(sources),
        question=question,
    )
