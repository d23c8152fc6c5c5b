"""
Ingestion stage: fetch active sources and store new articles.

Each source is fetched, decoded into at most `fetch.max_items` candidates,
deduplicated within the batch, categorized and inserted with insert-or-skip
semantics on the article URL. A failing source is logged and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Iterable, Protocol

from rapidfuzz import fuzz

from ..categorizer import categorize
from ..config import AppConfig
from ..core.types import FeedItem, Source
from ..feeds.decoder import decode_feed
from ..logging_utils import get_logger, log_event
from ..store.repository import Store

logger = get_logger(__name__)


class FeedSource(Protocol):
    def fetch(self, url: str) -> str: ...


@dataclass
class IngestStats:
    """Counts collected during one ingestion run.

    Attributes:
        sources_processed: Active sources that were fetched and decoded
        sources_failed: Sources skipped because fetching, decoding or storing failed
        articles_seen: Candidates decoded across all sources
        articles_inserted: Candidates that created a new article row
    """
    sources_processed: int = 0
    sources_failed: int = 0
    articles_seen: int = 0
    articles_inserted: int = 0


def run_ingest(
    store: Store,
    fetcher: FeedSource,
    cfg: AppConfig,
    now: datetime | None = None,
) -> IngestStats:
    stats = IngestStats()
    sources = store.active_sources()
    log_event(logger, f"Found {len(sources)} active sources", event="ingest_start", sources=len(sources))

    for source in sources:
        try:
            inserted, seen = ingest_source(store, fetcher, source, cfg, now)
        except Exception as exc:  # noqa: BLE001
            stats.sources_failed += 1
            log_event(
                logger,
                f"Error processing source {source.name}: {exc}",
                level=logging.ERROR,
                event="source_failed",
                source=source.name,
                url=source.url,
                error_type=type(exc).__name__,
            )
            continue
        stats.sources_processed += 1
        stats.articles_seen += seen
        stats.articles_inserted += inserted

    log_event(
        logger,
        f"Gathered {stats.articles_inserted} new articles from {stats.sources_processed} sources",
        event="ingest_complete",
        sources_processed=stats.sources_processed,
        sources_failed=stats.sources_failed,
        articles_inserted=stats.articles_inserted,
    )
    return stats


def ingest_source(
    store: Store,
    fetcher: FeedSource,
    source: Source,
    cfg: AppConfig,
    now: datetime | None = None,
) -> tuple[int, int]:
    """Ingest one source.

    Returns:
        Tuple of (articles_inserted, candidates_seen)

    Raises:
        TransientFetchError: If the feed cannot be fetched
        ParseError: If the feed cannot be decoded
    """
    gathered_at = now or datetime.now(timezone.utc)
    logger.info("Processing source: %s", source.name)
    raw = fetcher.fetch(source.url)
    items = list(decode_feed(raw, max_items=cfg.fetch.max_items, now=gathered_at))
    if cfg.dedup.enabled:
        items = dedup_items(items, cfg.dedup.title_similarity_threshold)

    inserted = 0
    for item in items:
        category = categorize(item.title, item.content)
        if store.insert_article(item, source, category, gathered_at=gathered_at):
            inserted += 1
        else:
            logger.debug("Article already stored: %s", item.link)
    return inserted, len(items)


def dedup_items(items: Iterable[FeedItem], threshold: int = 92) -> list[FeedItem]:
    """Drop repeated URLs and near-identical titles within one batch, keeping order.

    Uses rapidfuzz's ratio, so a threshold of 92 means titles must be 92%
    similar to count as duplicates.
    """
    seen_urls: set[str] = set()
    titles: list[str] = []
    kept: list[FeedItem] = []
    for item in items:
        if item.link in seen_urls:
            continue
        if any(fuzz.ratio(item.title, existing) >= threshold for existing in titles):
            continue
        seen_urls.add(item.link)
        titles.append(item.title)
        kept.append(item)
    return kept
