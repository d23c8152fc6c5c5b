"""
SQLAlchemy table definitions for the newsletter store.

Uniqueness rules double as idempotency fences:
- articles.url: one row per article URL
- sources.url, users.email: configuration loads are insert-or-skip
- sent_articles (article_id, user_email): an article is sent to a user once
- newsletter_deliveries (user_email, delivery_date) where status = 'sent':
  at most one successful delivery per user per day
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceRow(Base):
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False, unique=True)
    source_type = Column(String(32), nullable=False, default="feed")
    keywords = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("source_type IN ('feed', 'aggregator')", name="ck_sources_source_type"),
    )


class ArticleRow(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    url = Column(Text, nullable=False, unique=True)
    content = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    source_id = Column(Integer, ForeignKey("sources.id"), nullable=True)
    source_name = Column(String(255), nullable=False)
    published_date = Column(DateTime(timezone=True), nullable=True)
    gathered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    relevance_score = Column(Float, nullable=True)
    topic_category = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_articles_published_date", "published_date"),
        Index("idx_articles_relevance_score", "relevance_score"),
        Index("idx_articles_gathered_at", "gathered_at"),
        Index("idx_articles_source_id", "source_id"),
    )


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, unique=True)
    name = Column(String(255), nullable=True)
    topics = Column(JSON, nullable=False, default=list)
    frequency = Column(String(16), nullable=False)
    delivery_day = Column(Integer, nullable=True)
    delivery_time = Column(Time, nullable=True)
    article_count = Column(Integer, nullable=False, default=5)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "frequency IN ('daily', 'weekly', 'bi-weekly', 'monthly')",
            name="ck_users_frequency",
        ),
        CheckConstraint("article_count >= 3 AND article_count <= 15", name="ck_users_article_count"),
    )


class SentArticleRow(Base):
    __tablename__ = "sent_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False)
    user_email = Column(String(320), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    topic_category = Column(String(128), nullable=True)
    article_title = Column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("article_id", "user_email", name="uq_sent_articles_article_user"),
        Index("idx_sent_articles_user_email", "user_email"),
        Index("idx_sent_articles_sent_at", "sent_at"),
    )


class NewsletterDeliveryRow(Base):
    __tablename__ = "newsletter_deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String(320), nullable=False)
    delivery_date = Column(Date, nullable=False)
    article_count = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'sent', 'failed')", name="ck_deliveries_status"),
        Index("idx_newsletter_deliveries_user_email", "user_email"),
        Index("idx_newsletter_deliveries_delivery_date", "delivery_date"),
        Index(
            "uq_newsletter_deliveries_sent_per_day",
            "user_email",
            "delivery_date",
            unique=True,
            sqlite_where=text("status = 'sent'"),
            postgresql_where=text("status = 'sent'"),
        ),
    )
