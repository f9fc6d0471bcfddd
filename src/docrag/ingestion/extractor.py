"""Plain-text extraction: thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from langchain_community.document_loaders import (
    BSHTMLLoader,
    Docx2txtLoader,
    PyPDFLoader,
    TextLoader,
    UnstructuredExcelLoader,
    UnstructuredPowerPointLoader,
    UnstructuredWordDocumentLoader,
)

from docrag.errors import ExtractionFailure

if TYPE_CHECKING:
    from langchain_core.document_loaders import BaseLoader

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = (
    "The document contains no extractable text. It may be a scanned image, "
    "password protected, or in an unsupported format."
)


def _text_loader(path: str) -> BaseLoader:
    return TextLoader(path, autodetect_encoding=True)


def _markup_loader(path: str) -> BaseLoader:
    # Block elements must stay separate words
    return BSHTMLLoader(path, get_text_separator="\n")


_LOADERS: dict[str, Callable[[str], BaseLoader]] = {
    ".pdf": PyPDFLoader,
    ".docx": Docx2txtLoader,
    ".doc": UnstructuredWordDocumentLoader,
    ".xls": UnstructuredExcelLoader,
    ".xlsx": UnstructuredExcelLoader,
    ".ppt": UnstructuredPowerPointLoader,
    ".pptx": UnstructuredPowerPointLoader,
    ".html": _markup_loader,
    ".htm": _markup_loader,
    ".xml": _markup_loader,
}


def get_loader(path: str | Path) -> BaseLoader:
    """Pick a loader by file extension; unknown extensions are read as text."""
    factory = _LOADERS.get(Path(path).suffix.lower(), _text_loader)
    return factory(str(path))


def has_usable_text(text: str | None) -> bool:
    return bool(text) and any(ch.isalnum() for ch in text)


def extract_text(path: str | Path) -> str:
    """Return the plain text of the document at *path*.

    Raises
    ------
    ExtractionFailure
        When the loader fails or the document yields no usable text.
    """
    try:
        pages = get_loader(path).load()
    except Exception as exc:
        logger.warning("Loader failed for %s: %s", path, exc)
        raise ExtractionFailure(NO_TEXT_MESSAGE) from exc

    text = "\n\n".join(page.page_content for page in pages if page.page_content)
    if not has_usable_text(text):
        raise ExtractionFailure(NO_TEXT_MESSAGE)
    return text


def is_supported_file(filename: str, extensions: tuple[str, ...] | None = None) -> bool:
    """Case-insensitive extension check against the configured allow-list."""
    if extensions is None:
        from docrag.config import settings

        extensions = settings.supported_extensions
    return Path(filename).suffix.lower() in {ext.lower() for ext in extensions}
