"""
LLM Module
Multi-provider completion backends
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole
from .openai_llm import OpenAILLM
from .anthropic_llm import AnthropicLLM
from .gemini_llm import GeminiLLM
from .factory import DEFAULT_MODELS, SUPPORTED_PROVIDERS, get_llm, provider_api_key

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "DEFAULT_MODELS",
    "SUPPORTED_PROVIDERS",
    "get_llm",
    "provider_api_key",
]
