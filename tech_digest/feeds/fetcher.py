"""
HTTP feed fetching.

`fetch_url` performs a bounded number of attempts with a per-request
timeout and returns a FetchResult. `FeedFetcher` wraps it for the
ingestion stage and raises TransientFetchError when a feed cannot be
retrieved.
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable

import httpx

from ..config import FetchConfig
from ..errors import TransientFetchError


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None


def fetch_url(
    url: str,
    timeout: float,
    retries: int,
    user_agent: str,
    trust_env: bool,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchResult:
    """Fetch a URL using httpx with retry logic.

    Server errors and network failures are retried with a linear backoff;
    client errors (4xx) are returned immediately.

    Args:
        url: The URL to fetch
        timeout: Request timeout in seconds
        retries: Number of retry attempts after initial failure
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment
        sleep: Sleep function used between attempts

    Returns:
        FetchResult with text on success or error message on failure
    """
    headers = {"User-Agent": user_agent}
    last_error: str | None = None
    last_status: int | None = None

    for attempt in range(retries + 1):
        try:
            with httpx.Client(
                timeout=timeout,
                headers=headers,
                follow_redirects=True,
                trust_env=trust_env,
            ) as client:
                resp = client.get(url)
            if resp.status_code < 400:
                return FetchResult(url=url, status_code=resp.status_code, text=resp.text, error=None)
            last_status = resp.status_code
            last_error = f"HTTP {resp.status_code}"
            if resp.status_code < 500:
                break
        except httpx.HTTPError as exc:
            last_error = f"{type(exc).__name__}: {exc}"
        if attempt < retries:
            # Backoff: 0.5s, 1.0s, 1.5s...
            sleep(0.5 * (attempt + 1))

    return FetchResult(url=url, status_code=last_status, text=None, error=last_error)


class FeedFetcher:
    """Feed source collaborator used by the ingestion stage."""

    def __init__(self, cfg: FetchConfig):
        self.cfg = cfg

    def fetch(self, url: str) -> str:
        result = fetch_url(
            url,
            timeout=self.cfg.timeout_seconds,
            retries=self.cfg.retries,
            user_agent=self.cfg.user_agent,
            trust_env=self.cfg.trust_env,
        )
        if result.text is None:
            raise TransientFetchError(url, result.error or "empty response", result.status_code)
        return result.text
