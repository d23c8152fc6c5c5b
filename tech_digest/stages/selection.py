from __future__ import annotations

from datetime import datetime, timedelta

from ..config import AppConfig, RelevanceConfig, SelectionConfig
from ..core.types import Article, User, clamp_article_count
from ..logging_utils import get_logger
from ..store.repository import Store

logger = get_logger(__name__)


def select_articles(
    store: Store,
    user: User,
    now: datetime,
    cfg: AppConfig | None = None,
) -> list[Article]:
    """Pick the articles for one user's digest.

    Candidates are relevant articles gathered within the recency window that
    were never sent to this user, best score first. Returns an empty list
    when nothing qualifies.
    """
    relevance = cfg.relevance if cfg else RelevanceConfig()
    selection = cfg.selection if cfg else SelectionConfig()
    limit = clamp_article_count(user.article_count)
    excluded = store.sent_article_ids(user.email)
    articles = store.candidate_articles(
        min_score=relevance.threshold,
        gathered_since=now - timedelta(days=selection.recency_days),
        exclude_ids=excluded,
        limit=limit,
    )
    logger.debug(
        "Selected %d of %d requested articles for %s (%d excluded)",
        len(articles),
        limit,
        user.email,
        len(excluded),
    )
    return articles
