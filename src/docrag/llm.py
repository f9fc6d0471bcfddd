"""LLM initialisation: single place to swap providers.

The provider is chosen once, from ``settings.llm_provider``:

1. **openai** (default): OpenAI cloud, or any OpenAI-compatible server
   (e.g. vLLM) when ``LLM_BASE_URL`` is set.
2. **gemini**: Google Gemini through ``langchain-google-genai``.
3. **ollama**: a local Ollama daemon via its OpenAI-compatible ``/v1`` API.
4. **openrouter**: the OpenRouter gateway (OpenAI-compatible).

Callers only ever see :class:`TextGenerator.generate`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from langchain_openai import ChatOpenAI

from docrag.config import Settings, settings
from docrag.errors import ConfigurationError, GenerationFailure

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class TextGenerator:
    """``generate(prompt) -> text`` on top of any LangChain chat model."""

    def __init__(self, chat_model: BaseChatModel, provider: str = "custom") -> None:
        self.chat_model = chat_model
        self.provider = provider

    def generate(self, prompt: str) -> str:
        """Return the model's completion for *prompt*.

        Raises
        ------
        GenerationFailure
            On any provider error (timeout, quota, network, …).
        """
        try:
            message = self.chat_model.invoke(prompt)
        except Exception as exc:
            raise GenerationFailure(f"{self.provider} request failed: {exc}") from exc
        return _message_text(message.content)


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Some providers return a list of content blocks.
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# -- providers ----------------------------------------------------------------


def _openai(cfg: Settings) -> BaseChatModel:
    kwargs: dict = {
        "model": cfg.llm_model_name,
        "temperature": cfg.llm_temperature,
        "max_tokens": cfg.llm_max_tokens,
    }
    if cfg.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", cfg.llm_base_url)
        kwargs["base_url"] = cfg.llm_base_url
        # Self-hosted servers don't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = cfg.openai_api_key or "EMPTY"
    elif not cfg.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set (or set LLM_BASE_URL for a self-hosted server)")
    else:
        kwargs["api_key"] = cfg.openai_api_key
    return ChatOpenAI(**kwargs)


def _gemini(cfg: Settings) -> BaseChatModel:
    if not cfg.gemini_api_key:
        raise ConfigurationError(
            "GEMINI_API_KEY is not set. Get a key at https://aistudio.google.com/app/apikey"
        )
    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=cfg.gemini_model,
        google_api_key=cfg.gemini_api_key,
        temperature=cfg.llm_temperature,
        max_output_tokens=cfg.llm_max_tokens,
    )


def _ollama(cfg: Settings) -> BaseChatModel:
    return ChatOpenAI(
        model=cfg.ollama_model,
        base_url=f"{cfg.ollama_base_url.rstrip('/')}/v1",
        api_key="ollama",
        temperature=cfg.llm_temperature,
        max_tokens=cfg.llm_max_tokens,
        timeout=cfg.ollama_timeout,
    )


def _openrouter(cfg: Settings) -> BaseChatModel:
    if not cfg.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY is not set. Get a key at https://openrouter.ai/keys")
    headers = {
        "HTTP-Referer": cfg.openrouter_app_url or "http://localhost:8000",
        "X-Title": cfg.openrouter_app_name,
    }
    return ChatOpenAI(
        model=cfg.openrouter_model,
        base_url=OPENROUTER_BASE_URL,
        api_key=cfg.openrouter_api_key,
        temperature=cfg.llm_temperature,
        max_tokens=cfg.llm_max_tokens,
        default_headers=headers,
    )


PROVIDERS: dict[str, Callable[[Settings], BaseChatModel]] = {
    "openai": _openai,
    "gemini": _gemini,
    "ollama": _ollama,
    "openrouter": _openrouter,
}


def resolve_provider(name: str) -> str:
    provider = (name or "").strip().lower()
    if provider not in PROVIDERS:
        logger.warning("Unknown LLM provider %r, falling back to %s", name, DEFAULT_PROVIDER)
        return DEFAULT_PROVIDER
    return provider


def build_chat_model(cfg: Settings | None = None) -> BaseChatModel:
    """Return the chat model for the configured provider."""
    cfg = cfg or settings
    provider = resolve_provider(cfg.llm_provider)
    logger.info("Configuring LLM provider: %s", provider)
    return PROVIDERS[provider](cfg)


def get_text_generator(cfg: Settings | None = None) -> TextGenerator:
    cfg = cfg or settings
    return TextGenerator(build_chat_model(cfg), provider=resolve_provider(cfg.llm_provider))
