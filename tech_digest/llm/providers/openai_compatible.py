"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...config import ProviderConfig
from ...errors import ConfigurationError, TransientFetchError
from .base import LLMProvider


class OpenAICompatibleProvider(LLMProvider):
    """Provider for OpenAI and any endpoint exposing /chat/completions."""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-3.5-turbo"

    def __init__(self, cfg: ProviderConfig, api_key: str | None):
        if not api_key:
            raise ConfigurationError("OpenAI API key not configured")
        self.cfg = cfg
        self.api_key = api_key
        self.base_url = (cfg.base_url or self.default_base_url).rstrip("/")
        self.model = cfg.model or self.default_model

    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        data = self._post(payload)
        return _extract_text(data)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
                resp = client.post(url, headers=headers, json=payload)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise TransientFetchError(url, str(exc), exc.response.status_code) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TransientFetchError(url, f"{type(exc).__name__}: {exc}") from exc


def _extract_text(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return (content or "").strip()
