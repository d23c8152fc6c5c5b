"""Google Gemini provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...config import ProviderConfig
from ...errors import ConfigurationError, TransientFetchError
from .base import LLMProvider


class GeminiProvider(LLMProvider):
    """Gemini-backed provider using the generateContent REST endpoint."""

    name = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com"
    default_model = "gemini-2.0-flash"

    def __init__(self, cfg: ProviderConfig, api_key: str | None):
        if not api_key:
            raise ConfigurationError("Missing Google API key")
        self.cfg = cfg
        self.api_key = api_key
        self.base_url = (cfg.base_url or self.default_base_url).rstrip("/")
        self.model = cfg.model or self.default_model

    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        data = self._post(payload)
        return _extract_text(data).strip()

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        params = {"key": self.api_key}
        try:
            with httpx.Client(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
                resp = client.post(url, params=params, json=payload)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise TransientFetchError(url, f"HTTP {exc.response.status_code}", exc.response.status_code) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TransientFetchError(url, f"{type(exc).__name__}: {exc}") from exc


def _extract_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate, skipping thought parts when possible."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    answer = [part.get("text", "") for part in parts if not part.get("thought")]
    if any(answer):
        return "".join(answer)
    return "".join(part.get("text", "") for part in parts)
