"""
Relevance scoring and summarization on top of an LLM provider.

The oracle raises on failure; deciding what a failed or malformed answer
means (a 0.0 score, a placeholder summary) is left to the relevance stage.
"""

from __future__ import annotations

import logging
import re

from ..config import RelevanceConfig
from ..errors import ScoreParseError
from ..logging_utils import get_logger, log_event
from .prompts import build_relevance_prompt, build_summary_prompt
from .providers.base import LLMProvider
from .tracing import record_span_error, set_span_output, start_span

logger = get_logger(__name__)

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")

SCORE_MAX_TOKENS = 10
SCORE_TEMPERATURE = 0.1
SUMMARY_MAX_TOKENS = 150
SUMMARY_TEMPERATURE = 0.3


def parse_score(text: str | None) -> float:
    """Extract the first number in an oracle response.

    Raises:
        ScoreParseError: If the response contains no number
    """
    match = _NUMBER_RE.search(text or "")
    if match is None:
        raise ScoreParseError(f"No score in response: {text!r}")
    return float(match.group(0))


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, value))


class ScoringOracle:
    """Scores and summarizes articles through a single LLM provider."""

    def __init__(self, provider: LLMProvider, cfg: RelevanceConfig):
        self.provider = provider
        self.cfg = cfg

    def score(self, title: str, content: str, source_name: str) -> float:
        """Return the raw relevance score reported by the model (not clamped)."""
        prompt = build_relevance_prompt(title, content, source_name, self.cfg.score_excerpt_chars)
        with start_span(
            "oracle.score",
            kind="llm",
            input_value=prompt,
            attributes={"llm.provider": self.provider.name, "article.title": title},
        ) as span:
            try:
                text = self.provider.complete(prompt, SCORE_MAX_TOKENS, SCORE_TEMPERATURE)
                set_span_output(span, text)
                log_event(logger, "Oracle score response", level=logging.DEBUG, event="oracle_score", raw=text)
                return parse_score(text)
            except Exception as exc:
                record_span_error(span, exc)
                raise

    def summarize(self, title: str, content: str) -> str:
        """Return the model's summary text, possibly empty."""
        prompt = build_summary_prompt(title, content, self.cfg.summary_excerpt_chars)
        with start_span(
            "oracle.summarize",
            kind="llm",
            input_value=prompt,
            attributes={"llm.provider": self.provider.name, "article.title": title},
        ) as span:
            try:
                text = self.provider.complete(prompt, SUMMARY_MAX_TOKENS, SUMMARY_TEMPERATURE)
            except Exception as exc:
                record_span_error(span, exc)
                raise
            set_span_output(span, text)
            return text.strip()
