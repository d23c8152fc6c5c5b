"""
Feed decoding for RSS and Atom documents.

`decode_feed` turns raw feed markup into at most `max_items` FeedItem
records. Items without a title or a link are dropped. Titles and
snippets are stripped of markup and control characters before they
leave this module.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import html
import re
from typing import Any, Iterator

from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date
import feedparser

from ..core.types import FEED_ITEM_CAP, FeedItem
from ..errors import FeedParseError
from ..logging_utils import get_logger

logger = get_logger(__name__)

# Timezone abbreviations seen in pubDate values that dateutil cannot resolve alone
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_SPACE_RE = re.compile(r"\s+")


def decode_feed(text: str, max_items: int = FEED_ITEM_CAP, now: datetime | None = None) -> Iterator[FeedItem]:
    """Decode raw feed markup into candidate articles.

    Args:
        text: Raw RSS/Atom document
        max_items: Maximum number of feed entries to consider
        now: Timestamp used for entries without a usable publication date

    Yields:
        FeedItem records in feed order

    Raises:
        FeedParseError: If the document has no entries and is not well-formed
    """
    feed = feedparser.parse(text)
    entries = list(feed.entries)
    if not entries and feed.get("bozo"):
        reason = feed.get("bozo_exception")
        raise FeedParseError(f"Unreadable feed: {reason}")

    fallback = now or datetime.now(timezone.utc)
    for entry in entries[:max_items]:
        item = _parse_entry(entry, fallback)
        if item is None:
            logger.debug("Dropped feed entry without title or link")
            continue
        yield item


def clean_text(value: str | None) -> str:
    """Strip markup, entities and control characters from feed text."""
    if not value:
        return ""
    if "<" in value and ">" in value:
        soup = BeautifulSoup(value, "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()
        value = soup.get_text(separator=" ")
    value = html.unescape(value)
    value = _CONTROL_RE.sub("", value)
    return _SPACE_RE.sub(" ", value).strip()


def _parse_entry(entry: Any, fallback: datetime) -> FeedItem | None:
    title = clean_text(entry.get("title"))
    link = (entry.get("link") or "").strip()
    if not title or not link:
        return None
    content = entry.get("summary") or entry.get("description") or ""
    if not content and entry.get("content"):
        content = entry["content"][0].get("value", "")
    return FeedItem(
        title=title,
        link=link,
        published_at=_parse_published_date(entry) or fallback,
        content=clean_text(content),
    )


def _parse_published_date(entry: Any) -> datetime | None:
    published = entry.get("published") or entry.get("updated")
    if not published:
        return None
    try:
        dt = parse_date(published, tzinfos=TZINFOS)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
