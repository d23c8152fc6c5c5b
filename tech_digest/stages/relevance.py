"""
Relevance stage: score and summarize unscored articles.

Up to `relevance.batch_size` unscored articles are processed, most recently
gathered first. Every oracle call is spaced by the throttle. A failed or
malformed score becomes 0.0, and a failed summary becomes the fixed
placeholder, so no article is left for a later run to retry.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol

from ..config import AppConfig
from ..core.types import SUMMARY_PLACEHOLDER, Article
from ..llm.oracle import clamp_score
from ..logging_utils import get_logger, log_event
from ..store.repository import Store
from ..throttle import Throttle

logger = get_logger(__name__)


class RelevanceOracle(Protocol):
    def score(self, title: str, content: str, source_name: str) -> float: ...

    def summarize(self, title: str, content: str) -> str: ...


@dataclass
class RelevanceStats:
    selected: int = 0
    scored: int = 0
    summarized: int = 0
    score_failures: int = 0
    summary_failures: int = 0
    update_failures: int = 0


def run_relevance(
    store: Store,
    oracle: RelevanceOracle,
    cfg: AppConfig,
    throttle: Throttle | None = None,
) -> RelevanceStats:
    throttle = throttle or Throttle(cfg.relevance.call_interval_seconds)
    stats = RelevanceStats()
    articles = store.unscored_articles(cfg.relevance.batch_size)
    stats.selected = len(articles)
    log_event(logger, f"Found {len(articles)} articles to process", event="relevance_start", count=len(articles))

    for article in articles:
        logger.info("Processing article: %s", article.title)
        score, summary = evaluate_article(article, oracle, cfg, throttle, stats)
        try:
            updated = store.update_article_relevance(article.id, score, summary)
        except Exception:  # noqa: BLE001
            stats.update_failures += 1
            logger.exception("Error updating article %s", article.id)
            continue
        if updated:
            stats.scored += 1
        else:
            logger.info("Article %s was scored by another run", article.id)

    log_event(
        logger,
        f"Processed {stats.scored} articles",
        event="relevance_complete",
        scored=stats.scored,
        summarized=stats.summarized,
        score_failures=stats.score_failures,
        summary_failures=stats.summary_failures,
    )
    return stats


def evaluate_article(
    article: Article,
    oracle: RelevanceOracle,
    cfg: AppConfig,
    throttle: Throttle,
    stats: RelevanceStats | None = None,
) -> tuple[float, str | None]:
    """Return (score, summary) for an article; never raises for oracle failures."""
    stats = stats if stats is not None else RelevanceStats()
    try:
        raw = throttle.call(oracle.score, article.title, article.content, article.source_name)
        score = clamp_score(float(raw))
    except Exception as exc:  # noqa: BLE001
        stats.score_failures += 1
        log_event(
            logger,
            f"Error evaluating article relevance: {exc}",
            level=logging.WARNING,
            event="score_failed",
            article_id=article.id,
        )
        score = 0.0

    if score < cfg.relevance.threshold:
        return score, None

    try:
        summary = throttle.call(oracle.summarize, article.title, article.content)
    except Exception as exc:  # noqa: BLE001
        stats.summary_failures += 1
        log_event(
            logger,
            f"Error generating article summary: {exc}",
            level=logging.WARNING,
            event="summary_failed",
            article_id=article.id,
        )
        summary = ""
    summary = (summary or "").strip()
    if summary:
        stats.summarized += 1
    return score, summary or SUMMARY_PLACEHOLDER
