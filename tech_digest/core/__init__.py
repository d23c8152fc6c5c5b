"""Core records and defaults shared by all pipeline stages."""

from .types import (
    Article,
    DeliveryStatus,
    FeedItem,
    Frequency,
    NewsletterDelivery,
    SentArticle,
    Source,
    SourceType,
    User,
    clamp_article_count,
)

__all__ = [
    "Article",
    "DeliveryStatus",
    "FeedItem",
    "Frequency",
    "NewsletterDelivery",
    "SentArticle",
    "Source",
    "SourceType",
    "User",
    "clamp_article_count",
]
