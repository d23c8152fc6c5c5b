"""Provider factory and registry for hot-swappable LLM backends."""

from __future__ import annotations

from ...config import ProviderConfig, get_api_key
from ...errors import ConfigurationError
from .base import LLMProvider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider


ProviderBuilder = type[LLMProvider]

_PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "gemini": GeminiProvider,
    "openai": OpenAICompatibleProvider,
    "openai_compatible": OpenAICompatibleProvider,
    "openai-compatible": OpenAICompatibleProvider,
}


def available_providers() -> list[str]:
    """Return the set of registered provider names."""
    return sorted(_PROVIDER_REGISTRY.keys())


def create_provider(provider_cfg: ProviderConfig) -> LLMProvider:
    """Build a provider instance from runtime config."""
    name = provider_cfg.name.lower().strip()
    builder = _PROVIDER_REGISTRY.get(name)
    if builder is None:
        supported = ", ".join(available_providers())
        raise ConfigurationError(f"Unsupported provider: {provider_cfg.name}. Supported: {supported}")
    return builder(provider_cfg, get_api_key(provider_cfg))
