"""Tests for the relevance stage with fake oracles."""

from __future__ import annotations

from datetime import timedelta

from tech_digest.core.types import SUMMARY_PLACEHOLDER
from tech_digest.errors import TransientFetchError
from tech_digest.llm.oracle import parse_score
from tech_digest.stages.relevance import run_relevance
from tech_digest.throttle import Throttle


class FakeOracle:
    def __init__(self, scores: dict[str, object], summaries: dict[str, object] | None = None):
        self.scores = scores
        self.summaries = summaries or {}
        self.calls: list[tuple[str, str]] = []

    def score(self, title, content, source_name):
        self.calls.append(("score", title))
        value = self.scores[title]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, str):
            return parse_score(value)
        return value

    def summarize(self, title, content):
        self.calls.append(("summarize", title))
        value = self.summaries.get(title, f"Summary of {title}")
        if isinstance(value, Exception):
            raise value
        return value


def test_relevant_article_gets_score_and_summary(store, cfg, add_article):
    article = add_article(title="Netflix AI")
    oracle = FakeOracle({"Netflix AI": 0.85})

    stats = run_relevance(store, oracle, cfg, Throttle(0))

    stored = store.get_article_by_url(article.url)
    assert stored.relevance_score == 0.85
    assert stored.summary == "Summary of Netflix AI"
    assert stats.scored == 1
    assert stats.summarized == 1


def test_irrelevant_article_keeps_null_summary(store, cfg, add_article):
    article = add_article(title="Gardening")
    oracle = FakeOracle({"Gardening": 0.2})

    run_relevance(store, oracle, cfg, Throttle(0))

    stored = store.get_article_by_url(article.url)
    assert stored.relevance_score == 0.2
    assert stored.summary is None
    assert ("summarize", "Gardening") not in oracle.calls


def test_oracle_failure_scores_zero(store, cfg, add_article):
    article = add_article(title="Down")
    oracle = FakeOracle({"Down": TransientFetchError("https://api.example", "timeout")})

    stats = run_relevance(store, oracle, cfg, Throttle(0))

    stored = store.get_article_by_url(article.url)
    assert stored.relevance_score == 0.0
    assert stored.summary is None
    assert stats.score_failures == 1


def test_unparseable_score_scores_zero(store, cfg, add_article):
    article = add_article(title="Chatty")
    oracle = FakeOracle({"Chatty": "I think this is quite relevant"})

    run_relevance(store, oracle, cfg, Throttle(0))

    assert store.get_article_by_url(article.url).relevance_score == 0.0


def test_scores_are_clamped(store, cfg, add_article):
    high = add_article(title="High")
    low = add_article(title="Low")
    oracle = FakeOracle({"High": "1.7", "Low": -0.4})

    run_relevance(store, oracle, cfg, Throttle(0))

    assert store.get_article_by_url(high.url).relevance_score == 1.0
    assert store.get_article_by_url(low.url).relevance_score == 0.0


def test_summary_failure_uses_placeholder(store, cfg, add_article):
    failing = add_article(title="Fails")
    empty = add_article(title="Empty")
    oracle = FakeOracle(
        {"Fails": 0.9, "Empty": 0.7},
        summaries={"Fails": TransientFetchError("https://api.example", "HTTP 500", 500), "Empty": "   "},
    )

    stats = run_relevance(store, oracle, cfg, Throttle(0))

    assert store.get_article_by_url(failing.url).summary == SUMMARY_PLACEHOLDER
    assert store.get_article_by_url(empty.url).summary == SUMMARY_PLACEHOLDER
    assert stats.summary_failures == 1
    assert stats.summarized == 0


def test_batch_is_limited_to_most_recent(store, cfg, add_article, now):
    cfg.relevance.batch_size = 2
    oldest = add_article(title="Oldest", gathered_at=now - timedelta(hours=3))
    add_article(title="Middle", gathered_at=now - timedelta(hours=2))
    add_article(title="Newest", gathered_at=now - timedelta(hours=1))
    oracle = FakeOracle({"Oldest": 0.1, "Middle": 0.1, "Newest": 0.1})

    stats = run_relevance(store, oracle, cfg, Throttle(0))

    assert stats.selected == 2
    assert [title for kind, title in oracle.calls] == ["Newest", "Middle"]
    assert store.get_article_by_url(oldest.url).relevance_score is None


def test_scored_articles_are_not_rescored(store, cfg, add_article):
    add_article(title="Done", score=0.9, summary="Already")
    oracle = FakeOracle({})

    stats = run_relevance(store, oracle, cfg, Throttle(0))

    assert stats.selected == 0
    assert oracle.calls == []


def test_every_oracle_call_is_spaced(store, cfg, add_article, clock, now):
    add_article(title="Relevant", gathered_at=now)
    add_article(title="Irrelevant", gathered_at=now - timedelta(hours=1))
    oracle = FakeOracle({"Relevant": 0.9, "Irrelevant": 0.1})
    throttle = Throttle(1.0, clock=clock, sleep=clock.sleep)

    run_relevance(store, oracle, cfg, throttle)

    assert oracle.calls == [("score", "Relevant"), ("summarize", "Relevant"), ("score", "Irrelevant")]
    assert throttle.calls == 3
    assert clock.sleeps == [1.0, 1.0]
