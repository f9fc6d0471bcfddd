"""Exception hierarchy shared by ingestion, deletion and query code.

A missing document is not an error: lookups return ``None`` and deletion
returns a ``not_found`` result.
"""

from __future__ import annotations


class DocRagError(Exception):
    """Base class for all errors raised by :mod:`docrag`."""


class ConfigurationError(DocRagError):
    """Settings are missing or inconsistent (e.g. no API key for the LLM provider)."""


class IngestionFailure(DocRagError):
    """A document could not be turned into stored chunks.

    ``str(exc)`` is meant for end users and ends up in the status record.
    """


class ExtractionFailure(IngestionFailure):
    """The document yielded no usable text (scanned, encrypted, unsupported, empty)."""


class EmbeddingFailure(IngestionFailure):
    """The embedding model was unavailable or rejected its input."""


class StoreFailure(DocRagError):
    """The vector store was unreachable or rejected an operation."""


class GenerationFailure(DocRagError):
    """The language model failed, timed out, or ran out of quota."""
