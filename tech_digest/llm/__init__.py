"""LLM scoring oracle and observability."""

from .oracle import ScoringOracle, clamp_score, parse_score
from .providers.base import LLMProvider
from .providers.factory import available_providers, create_provider
from .tracing import flush, setup_langfuse

__all__ = [
    "LLMProvider",
    "ScoringOracle",
    "available_providers",
    "clamp_score",
    "create_provider",
    "flush",
    "parse_score",
    "setup_langfuse",
]
