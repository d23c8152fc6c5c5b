"""Shared fixtures: in-memory stores, record factories and fake clocks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tech_digest.config import AppConfig
from tech_digest.core.types import FeedItem, Source, User
from tech_digest.store.repository import Store

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)  # a Monday


class FakeClock:
    """Monotonic clock whose sleep advances time instead of blocking."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SpySender:
    """Mail sender that records messages and can fail for chosen recipients."""

    name = "spy"

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent: list[dict] = []

    def send(self, to, subject, html, text=None):
        from tech_digest.errors import DeliveryError

        if to in self.fail_for:
            raise DeliveryError(f"mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def cfg() -> AppConfig:
    cfg = AppConfig()
    cfg.database.url = "sqlite://"
    cfg.mail.backend = "console"
    cfg.relevance.call_interval_seconds = 0.0
    return cfg


@pytest.fixture
def store() -> Store:
    store = Store.from_url("sqlite://")
    store.create_schema()
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spy_sender() -> SpySender:
    return SpySender()


@pytest.fixture
def source(store: Store) -> Source:
    store.insert_source(Source(id=None, name="Variety", url="https://variety.example/feed"))
    return store.active_sources()[0]


@pytest.fixture
def add_article(store: Store, source: Source):
    """Insert an article and optionally score it; returns the stored Article."""

    counter = {"n": 0}

    def _add(
        title: str | None = None,
        score: float | None = None,
        summary: str | None = None,
        gathered_at: datetime = NOW,
        category: str = "Streaming Platforms",
        url: str | None = None,
    ):
        counter["n"] += 1
        title = title or f"Article {counter['n']}"
        url = url or f"https://variety.example/articles/{counter['n']}"
        item = FeedItem(title=title, link=url, published_at=gathered_at - timedelta(hours=1), content=f"{title} body")
        store.insert_article(item, source, category, gathered_at=gathered_at)
        article = store.get_article_by_url(url)
        if score is not None:
            store.update_article_relevance(article.id, score, summary)
            article = store.get_article_by_url(url)
        return article

    return _add


@pytest.fixture
def add_user(store: Store):
    def _add(email: str = "reader@example.com", **kwargs) -> User | None:
        kwargs.setdefault("frequency", "daily")
        store.insert_user(User(id=None, email=email, **kwargs))
        return next((user for user in store.active_users() if user.email == email), None)

    return _add
