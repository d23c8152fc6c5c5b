"""LLM provider implementations."""

from .base import LLMProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = [
    "GeminiProvider",
    "LLMProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "create_provider",
]
