"""
Core data types for the newsletter pipeline.

This module defines the records passed between stages:
- FeedItem: Candidate article decoded from a feed, not yet stored
- Source: A configured feed or news aggregator
- Article: A stored article, optionally scored and summarized
- User: A newsletter subscriber with delivery preferences
- SentArticle: Marker that an article was delivered to a user
- NewsletterDelivery: One delivery attempt for a user on a calendar day

It also holds the named defaults that the schedule evaluator and the
selection stage fall back on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum


DEFAULT_DELIVERY_DAY = 1  # Monday, with 0 = Sunday
DEFAULT_ARTICLE_COUNT = 5
MIN_ARTICLE_COUNT = 3
MAX_ARTICLE_COUNT = 15
RELEVANCE_THRESHOLD = 0.6
SUMMARY_PLACEHOLDER = "Summary unavailable"
FEED_ITEM_CAP = 10
RECENCY_WINDOW_DAYS = 7
SCORING_BATCH_SIZE = 20


class SourceType(str, Enum):
    FEED = "feed"
    AGGREGATOR = "aggregator"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class FeedItem:
    """Candidate article decoded from raw feed markup.

    Attributes:
        title: Headline with markup stripped
        link: Article URL
        published_at: Publication timestamp, or decode time if the feed had none
        content: Description/summary text with markup stripped
    """
    title: str
    link: str
    published_at: datetime
    content: str = ""


@dataclass
class Source:
    id: int | None
    name: str
    url: str
    source_type: SourceType = SourceType.FEED
    keywords: list[str] = field(default_factory=list)
    active: bool = True


@dataclass
class Article:
    """A stored article.

    Attributes:
        id: Store identifier
        title: Headline
        url: Canonical URL, unique across the store
        content: Raw snippet captured at ingestion
        source_id: Identifier of the source it was gathered from
        source_name: Source name snapshot, used in prompts and digests
        published_at: Publication timestamp reported by the feed
        gathered_at: When the article was inserted
        topic_category: Label assigned by the categorizer
        relevance_score: Oracle score in [0, 1], None until scored
        summary: Short summary, None unless the article scored as relevant
    """
    id: int | None
    title: str
    url: str
    content: str
    source_id: int | None
    source_name: str
    published_at: datetime
    gathered_at: datetime
    topic_category: str
    relevance_score: float | None = None
    summary: str | None = None


@dataclass
class User:
    """Newsletter subscriber.

    Attributes:
        id: Store identifier
        email: Delivery address, unique across the store
        name: Display name used in the greeting
        topics: Topics of interest
        frequency: One of the Frequency values; unknown strings are kept as-is
        delivery_day: Weekday ordinal (0 = Sunday ... 6 = Saturday), used by
            weekly and bi-weekly schedules
        delivery_time: Preferred time of day
        article_count: Requested number of articles per digest
        active: Whether the user receives newsletters at all
    """
    id: int | None
    email: str
    name: str | None = None
    topics: list[str] = field(default_factory=list)
    frequency: str = Frequency.WEEKLY.value
    delivery_day: int | None = None
    delivery_time: time | None = None
    article_count: int = DEFAULT_ARTICLE_COUNT
    active: bool = True


@dataclass
class SentArticle:
    article_id: int
    user_email: str
    sent_at: datetime
    topic_category: str | None
    article_title: str


@dataclass
class NewsletterDelivery:
    user_email: str
    delivery_date: date
    article_count: int
    status: DeliveryStatus
    error_message: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    id: int | None = None


def clamp_article_count(value: int | None) -> int:
    """Return the requested article count bounded to the supported range."""
    if not value:
        return DEFAULT_ARTICLE_COUNT
    return max(MIN_ARTICLE_COUNT, min(MAX_ARTICLE_COUNT, int(value)))
