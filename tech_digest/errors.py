"""
Error taxonomy for the newsletter pipeline.

Stages decide per error class whether an item is skipped, defaulted,
recorded, or whether the whole run halts:
- TransientFetchError: a source or the LLM endpoint is unreachable
- ParseError: malformed feed item or malformed oracle output
- ConfigurationError: missing credential or invalid setting, fatal at start
- DeliveryError: sending a digest to one user failed
"""

from __future__ import annotations


class DigestError(Exception):
    """Base class for all pipeline errors."""


class TransientFetchError(DigestError):
    """An external endpoint could not be reached or returned an error status."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class ParseError(DigestError):
    """External content could not be interpreted."""


class FeedParseError(ParseError):
    """Feed markup is not a recognisable RSS/Atom document."""


class ScoreParseError(ParseError):
    """Oracle output does not contain a numeric relevance score."""


class ConfigurationError(DigestError):
    """Required configuration is missing or invalid."""


class DeliveryError(DigestError):
    """A digest could not be handed to the mail transport."""
