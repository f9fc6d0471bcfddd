"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    log_level: str = "INFO"

    # Chunking
    chunk_size: int = Field(default=300, description="Maximum characters per chunk")
    chunk_overlap: int = Field(default=50, description="Characters shared by adjacent chunks")

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embed_batch_size: int = Field(default=50, description="Chunks per embed-and-store batch")

    # Retrieval
    top_k: int = 10

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "documents"
    chroma_distance: str = "cosine"
    delete_page_size: int = 1000

    # Ingestion
    ingest_max_workers: int = 4
    ingest_rollback_on_failure: bool = Field(
        default=False,
        description=(
            "Delete the points already written by a run when a later batch fails. "
            "Off by default: earlier batches stay in the store and the document "
            "is marked ERROR."
        ),
    )
    supported_extensions: tuple[str, ...] = (
        ".pdf",
        ".doc",
        ".docx",
        ".xls",
        ".xlsx",
        ".ppt",
        ".pptx",
        ".txt",
        ".html",
        ".xml",
    )

    # LLM
    llm_provider: str = Field(default="openai", description="openai | gemini | ollama | openrouter")
    llm_temperature: float = 0.3
    llm_max_tokens: int = 1024

    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="OpenAI model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://vllm.internal/v1' for a self-hosted server."
        ),
    )

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    ollama_timeout: int = 120

    openrouter_api_key: str = ""
    openrouter_model: str = "anthropic/claude-3-haiku"
    openrouter_app_name: str = "docrag"
    openrouter_app_url: str = ""

    # File-drop watcher
    file_polling_enabled: bool = False
    file_polling_input_dir: Path = Path.home() / "rag-input"
    file_polling_processed_dir: Path = Path.home() / "rag-processed"
    file_polling_error_dir: Path = Path.home() / "rag-errors"
    file_polling_interval: float = Field(default=5.0, description="Seconds between directory scans")
    file_polling_initial_delay: float = 1.0
    file_polling_pattern: str = r".*\.(pdf|doc|docx|xls|xlsx|ppt|pptx|txt|html|xml)$"
    file_polling_max_concurrent: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton: import `settings` wherever needed.
settings = Settings()
