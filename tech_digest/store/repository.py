"""
Relational store used by every pipeline stage.

All cross-run coordination goes through this class: inserts that may
repeat use ON CONFLICT DO NOTHING against the unique constraints in
`models`, and "already done" checks are plain existence queries. Rows are
converted to the dataclasses in `core.types` before they leave the store.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Iterable, Iterator, Sequence

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.types import (
    Article,
    DeliveryStatus,
    FeedItem,
    NewsletterDelivery,
    Source,
    SourceType,
    User,
    clamp_article_count,
)
from ..errors import ConfigurationError
from ..logging_utils import get_logger
from .models import (
    ArticleRow,
    Base,
    NewsletterDeliveryRow,
    SentArticleRow,
    SourceRow,
    UserRow,
    utcnow,
)

logger = get_logger(__name__)

_ERROR_MESSAGE_MAX = 2000


def create_store_engine(url: str, echo: bool = False) -> Engine:
    """Build an engine; in-memory SQLite shares one connection across sessions."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, echo=echo, future=True)


class Store:
    """Store collaborator backed by SQLite or PostgreSQL."""

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in ("sqlite", "postgresql"):
            raise ConfigurationError(f"Unsupported database dialect: {dialect}")
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Store":
        return cls(create_store_engine(url, echo=echo))

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def table_names(self) -> list[str]:
        return sorted(Base.metadata.tables)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session whose work commits on exit and rolls back on error."""
        with self._sessions() as session:
            with session.begin():
                yield session

    def _insert(self, table: Any):
        if self.engine.dialect.name == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)

    # Sources

    def insert_source(self, source: Source) -> bool:
        stmt = (
            self._insert(SourceRow)
            .values(
                name=source.name,
                url=source.url,
                source_type=_enum_value(source.source_type),
                keywords=list(source.keywords),
                active=source.active,
            )
            .on_conflict_do_nothing(index_elements=["url"])
        )
        with self.session() as session:
            return session.execute(stmt).rowcount > 0

    def set_source_active(self, url: str, active: bool) -> bool:
        stmt = update(SourceRow).where(SourceRow.url == url).values(active=active, updated_at=utcnow())
        with self.session() as session:
            return session.execute(stmt).rowcount > 0

    def active_sources(self) -> list[Source]:
        stmt = select(SourceRow).where(SourceRow.active.is_(True)).order_by(SourceRow.id)
        with self.session() as session:
            return [_to_source(row) for row in session.scalars(stmt)]

    def sources(self) -> list[Source]:
        with self.session() as session:
            return [_to_source(row) for row in session.scalars(select(SourceRow).order_by(SourceRow.id))]

    # Users

    def insert_user(self, user: User) -> bool:
        stmt = (
            self._insert(UserRow)
            .values(
                email=user.email,
                name=user.name,
                topics=list(user.topics),
                frequency=_enum_value(user.frequency),
                delivery_day=user.delivery_day,
                delivery_time=user.delivery_time,
                article_count=clamp_article_count(user.article_count),
                active=user.active,
            )
            .on_conflict_do_nothing(index_elements=["email"])
        )
        with self.session() as session:
            return session.execute(stmt).rowcount > 0

    def active_users(self) -> list[User]:
        stmt = select(UserRow).where(UserRow.active.is_(True)).order_by(UserRow.id)
        with self.session() as session:
            return [_to_user(row) for row in session.scalars(stmt)]

    # Articles

    def insert_article(
        self,
        item: FeedItem,
        source: Source,
        topic_category: str,
        gathered_at: datetime | None = None,
    ) -> bool:
        """Insert an article unless its URL is already stored.

        Returns:
            True if a new row was created, False if the URL already existed
        """
        stmt = (
            self._insert(ArticleRow)
            .values(
                title=item.title,
                url=item.link,
                content=item.content,
                source_id=source.id,
                source_name=source.name,
                published_date=_as_utc(item.published_at),
                gathered_at=_as_utc(gathered_at or utcnow()),
                topic_category=topic_category,
            )
            .on_conflict_do_nothing(index_elements=["url"])
        )
        with self.session() as session:
            return session.execute(stmt).rowcount > 0

    def get_article_by_url(self, url: str) -> Article | None:
        with self.session() as session:
            row = session.scalars(select(ArticleRow).where(ArticleRow.url == url)).first()
            return _to_article(row) if row is not None else None

    def count_articles(self, url: str | None = None) -> int:
        stmt = select(func.count()).select_from(ArticleRow)
        if url is not None:
            stmt = stmt.where(ArticleRow.url == url)
        with self.session() as session:
            return session.scalar(stmt) or 0

    def unscored_articles(self, limit: int) -> list[Article]:
        stmt = (
            select(ArticleRow)
            .where(ArticleRow.relevance_score.is_(None))
            .order_by(ArticleRow.gathered_at.desc(), ArticleRow.id.desc())
            .limit(limit)
        )
        with self.session() as session:
            return [_to_article(row) for row in session.scalars(stmt)]

    def update_article_relevance(self, article_id: int, score: float, summary: str | None) -> bool:
        """Write score and summary together, only if the article is still unscored."""
        stmt = (
            update(ArticleRow)
            .where(ArticleRow.id == article_id, ArticleRow.relevance_score.is_(None))
            .values(relevance_score=score, summary=summary)
        )
        with self.session() as session:
            return session.execute(stmt).rowcount > 0

    def candidate_articles(
        self,
        min_score: float,
        gathered_since: datetime,
        exclude_ids: Iterable[int],
        limit: int,
    ) -> list[Article]:
        """Most relevant recent articles, highest score first, ties by id."""
        stmt = select(ArticleRow).where(
            ArticleRow.relevance_score >= min_score,
            ArticleRow.gathered_at >= _as_utc(gathered_since),
        )
        excluded = sorted(set(exclude_ids))
        if excluded:
            stmt = stmt.where(ArticleRow.id.not_in(excluded))
        stmt = stmt.order_by(ArticleRow.relevance_score.desc(), ArticleRow.id.asc()).limit(limit)
        with self.session() as session:
            return [_to_article(row) for row in session.scalars(stmt)]

    # Deliveries

    def sent_article_ids(self, user_email: str) -> set[int]:
        stmt = select(SentArticleRow.article_id).where(SentArticleRow.user_email == user_email)
        with self.session() as session:
            return set(session.scalars(stmt))

    def has_sent_delivery(self, user_email: str, delivery_date: date) -> bool:
        stmt = (
            select(NewsletterDeliveryRow.id)
            .where(
                NewsletterDeliveryRow.user_email == user_email,
                NewsletterDeliveryRow.delivery_date == delivery_date,
                NewsletterDeliveryRow.status == DeliveryStatus.SENT.value,
            )
            .limit(1)
        )
        with self.session() as session:
            return session.scalar(stmt) is not None

    def record_delivery_success(
        self,
        user: User,
        articles: Sequence[Article],
        delivery_date: date,
        sent_at: datetime | None = None,
    ) -> int:
        """Record sent markers and the `sent` delivery row in one transaction.

        Returns:
            Number of sent markers that were newly created
        """
        sent_at = _as_utc(sent_at or utcnow())
        created = 0
        with self.session() as session:
            for article in articles:
                stmt = (
                    self._insert(SentArticleRow)
                    .values(
                        article_id=article.id,
                        user_email=user.email,
                        sent_at=sent_at,
                        topic_category=article.topic_category,
                        article_title=article.title,
                    )
                    .on_conflict_do_nothing(index_elements=["article_id", "user_email"])
                )
                created += session.execute(stmt).rowcount
            delivery = (
                self._insert(NewsletterDeliveryRow)
                .values(
                    user_email=user.email,
                    delivery_date=delivery_date,
                    article_count=len(articles),
                    status=DeliveryStatus.SENT.value,
                    sent_at=sent_at,
                )
                .on_conflict_do_nothing()
            )
            if session.execute(delivery).rowcount == 0:
                logger.warning("Delivery for %s on %s was already recorded", user.email, delivery_date)
        return created

    def record_delivery_failure(self, user_email: str, delivery_date: date, error_message: str) -> None:
        row = NewsletterDeliveryRow(
            user_email=user_email,
            delivery_date=delivery_date,
            article_count=0,
            status=DeliveryStatus.FAILED.value,
            error_message=error_message[:_ERROR_MESSAGE_MAX],
        )
        with self.session() as session:
            session.add(row)

    def deliveries(
        self,
        user_email: str | None = None,
        delivery_date: date | None = None,
        status: DeliveryStatus | None = None,
        limit: int | None = None,
    ) -> list[NewsletterDelivery]:
        stmt = select(NewsletterDeliveryRow)
        if user_email is not None:
            stmt = stmt.where(NewsletterDeliveryRow.user_email == user_email)
        if delivery_date is not None:
            stmt = stmt.where(NewsletterDeliveryRow.delivery_date == delivery_date)
        if status is not None:
            stmt = stmt.where(NewsletterDeliveryRow.status == status.value)
        stmt = stmt.order_by(NewsletterDeliveryRow.created_at.desc(), NewsletterDeliveryRow.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.session() as session:
            return [_to_delivery(row) for row in session.scalars(stmt)]

    def table_counts(self) -> dict[str, int]:
        tables = {
            "sources": SourceRow,
            "articles": ArticleRow,
            "users": UserRow,
            "sent_articles": SentArticleRow,
            "newsletter_deliveries": NewsletterDeliveryRow,
        }
        with self.session() as session:
            return {
                name: session.scalar(select(func.count()).select_from(model)) or 0
                for name, model in tables.items()
            }


def _enum_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_db(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_source(row: SourceRow) -> Source:
    return Source(
        id=row.id,
        name=row.name,
        url=row.url,
        source_type=SourceType(row.source_type),
        keywords=list(row.keywords or []),
        active=bool(row.active),
    )


def _to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        topics=list(row.topics or []),
        frequency=row.frequency,
        delivery_day=row.delivery_day,
        delivery_time=row.delivery_time,
        article_count=clamp_article_count(row.article_count),
        active=bool(row.active),
    )


def _to_article(row: ArticleRow) -> Article:
    gathered_at = _from_db(row.gathered_at)
    return Article(
        id=row.id,
        title=row.title,
        url=row.url,
        content=row.content or "",
        source_id=row.source_id,
        source_name=row.source_name,
        published_at=_from_db(row.published_date) or gathered_at,
        gathered_at=gathered_at,
        topic_category=row.topic_category or "",
        relevance_score=row.relevance_score,
        summary=row.summary,
    )


def _to_delivery(row: NewsletterDeliveryRow) -> NewsletterDelivery:
    return NewsletterDelivery(
        id=row.id,
        user_email=row.user_email,
        delivery_date=row.delivery_date,
        article_count=row.article_count,
        status=DeliveryStatus(row.status),
        error_message=row.error_message,
        created_at=_from_db(row.created_at),
        sent_at=_from_db(row.sent_at),
    )
