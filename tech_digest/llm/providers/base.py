"""Abstract interface for text-completion LLM backends."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Provider interface used by the scoring and summarizer oracles."""

    name: str = "base"

    @abstractmethod
    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Return the model's text response for a single user prompt.

        Raises:
            TransientFetchError: If the endpoint is unreachable or rejects the request
        """
        raise NotImplementedError
