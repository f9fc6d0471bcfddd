"""DocRAG: document ingestion with status tracking and retrieval-augmented answers."""

__version__ = "0.1.0"
