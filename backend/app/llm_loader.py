"""LLM provider loader for the enrichment collaborator.

Chat models are built lazily from environment variables so the chart engine
itself never needs a provider package installed. Groq is the default; NVIDIA
and OpenAI-compatible endpoints are selected with ``LLM_PROVIDER``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from langchain_core.language_models.chat_models import BaseChatModel

from core.config import env

DEFAULT_PROVIDER = "groq"
DEFAULT_NVIDIA_BASE = "https://integrate.api.nvidia.com/v1"

DEFAULT_MODELS = {
    "groq": "llama-3.1-8b-instant",
    "nvidia": "meta/llama-3.1-8b-instruct",
    "openai": "gpt-4o-mini",
}

_ALIASES = {"nv": "nvidia", "nvcf": "nvidia", "oa": "openai"}


class LLMConfigError(RuntimeError):
    """Raised when the requested LLM provider cannot be initialised."""


def get_provider_name() -> str:
    raw = (env("LLM_PROVIDER", DEFAULT_PROVIDER) or DEFAULT_PROVIDER).lower()
    return _ALIASES.get(raw, raw)


def _model_name(provider: str) -> str:
    return env("LLM_MODEL", DEFAULT_MODELS[provider]) or DEFAULT_MODELS[provider]


def _api_key(provider: str, *fallbacks: str) -> str:
    for key in ("LLM_API_KEY",) + fallbacks:
        value = env(key)
        if value:
            return value
    raise LLMConfigError(
        f"{provider} provider selected but no API key found. "
        f"Set LLM_API_KEY or {fallbacks[0]}."
    )


def _groq(temperature: float) -> BaseChatModel:
    try:
        from langchain_groq import ChatGroq  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise LLMConfigError(
            "Groq provider selected but langchain-groq is not installed. "
            "Run `pip install langchain-groq` or switch LLM_PROVIDER."
        ) from exc

    return ChatGroq(
        model=_model_name("groq"),
        temperature=temperature,
        groq_api_key=_api_key("Groq", "GROQ_API_KEY"),
    )


def _nvidia(temperature: float) -> BaseChatModel:
    try:
        from langchain_nvidia_ai_endpoints import ChatNVIDIA  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise LLMConfigError(
            "NVIDIA provider selected but langchain-nvidia-ai-endpoints is not installed."
        ) from exc

    api_key = _api_key("NVIDIA", "NVIDIA_API_KEY", "NVCF_API_KEY")
    base_url = env("LLM_BASE_URL", DEFAULT_NVIDIA_BASE) or DEFAULT_NVIDIA_BASE
    return ChatNVIDIA(
        model=_model_name("nvidia"),
        temperature=temperature,
        base_url=base_url.rstrip("/"),
        api_key=api_key,
    )


def _openai(temperature: float) -> BaseChatModel:
    try:
        from langchain_openai import ChatOpenAI  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise LLMConfigError(
            "OpenAI provider selected but langchain-openai is not installed. "
            "Run `pip install langchain-openai` or switch LLM_PROVIDER."
        ) from exc

    kwargs: Dict[str, Any] = {
        "model": _model_name("openai"),
        "temperature": temperature,
        "api_key": _api_key("OpenAI", "OPENAI_API_KEY"),
    }
    base_url = env("LLM_BASE_URL") or env("OPENAI_BASE_URL")
    if base_url:
        kwargs["base_url"] = base_url.rstrip("/")
    return ChatOpenAI(**kwargs)


_PROVIDERS: Dict[str, Callable[[float], BaseChatModel]] = {
    "groq": _groq,
    "nvidia": _nvidia,
    "openai": _openai,
}


def get_chat_model(temperature: float = 0.1) -> BaseChatModel:
    """Return a LangChain chat model for the configured provider."""
    provider = get_provider_name()
    factory = _PROVIDERS.get(provider)
    if factory is None:
        raise LLMConfigError(
            f"Unsupported LLM_PROVIDER '{provider}'. Expected 'groq', 'nvidia' or 'openai'."
        )
    return factory(temperature)
