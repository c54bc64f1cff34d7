"""
Backend factory
Map a candidate's provider name onto a configured backend instance
"""
from typing import Optional

from utils.exceptions import ConfigurationError

from .anthropic_llm import AnthropicLLM
from .base import BaseLLM
from .gemini_llm import GeminiLLM
from .openai_llm import OpenAILLM


DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "deepseek": "deepseek-chat",
    "gemini": "gemini-2.0-flash",
    "groq": "llama-3.1-8b-instant",
    "groq_builder": "llama-3.3-70b-versatile",
}

DEEPSEEK_BASE_URL = "https://api.deepseek.com"

SUPPORTED_PROVIDERS = tuple(DEFAULT_MODELS)

# groq_builder is the same Groq host reached with a dedicated key
_OPENAI_COMPATIBLE = {"openai", "deepseek", "groq", "groq_builder"}


def provider_api_key(provider: str) -> Optional[str]:
    from config import get_llm_settings

    settings = get_llm_settings()
    return getattr(settings, f"{provider}_api_key", None)


def _base_url(provider: str) -> Optional[str]:
    from config import get_llm_settings

    if provider in ("groq", "groq_builder"):
        return get_llm_settings().groq_base_url
    if provider == "deepseek":
        return DEEPSEEK_BASE_URL
    return None


def get_llm(provider: str, model: Optional[str] = None, **kwargs) -> BaseLLM:
    """
    Create a backend for `provider`.

    Args:
        provider: one of SUPPORTED_PROVIDERS
        model: model name (provider default when omitted)
        **kwargs: backend overrides (max_tokens, temperature, api_key, base_url)

    Raises:
        ValueError: unknown provider
        ConfigurationError: no API key for the provider
    """
    from config import get_llm_settings

    provider = str(provider or "").strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    settings = get_llm_settings()
    kwargs.setdefault("temperature", settings.temperature)
    kwargs.setdefault("timeout", settings.timeout)
    api_key = kwargs.pop("api_key", None) or provider_api_key(provider)
    if not api_key:
        raise ConfigurationError(f"No API key configured for provider {provider}")
    model = model or DEFAULT_MODELS[provider]

    if provider in _OPENAI_COMPATIBLE:
        base_url = kwargs.pop("base_url", None) or _base_url(provider)
        return OpenAILLM(model, api_key=api_key, base_url=base_url, provider_name=provider, **kwargs)
    if provider == "anthropic":
        return AnthropicLLM(model, api_key=api_key, **kwargs)
    return GeminiLLM(model, api_key=api_key, **kwargs)
