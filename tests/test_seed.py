from datetime import time

import pytest

from tech_digest.errors import ConfigurationError
from tech_digest.store.seed import day_number, load_seed_file, seed_store

SEED = {
    "rss_sources": [
        {"name": "Variety", "url": "https://variety.example/feed", "category": "Streaming Platforms", "active": True},
        {"name": "Old", "url": "https://old.example/feed", "category": "Production Tools", "active": False},
    ],
    "users": [
        {
            "email": "weekly@example.com",
            "name": "Weekly",
            "frequency": "weekly",
            "delivery_day": "wednesday",
            "delivery_time": "08:00",
            "article_count": 20,
        },
        {"email": "daily@example.com", "frequency": "daily"},
    ],
}


def test_seed_adds_active_sources_and_users(store):
    stats = seed_store(store, SEED)

    assert stats.sources_added == 1
    assert stats.users_added == 2
    sources = store.active_sources()
    assert [s.name for s in sources] == ["Variety"]
    assert sources[0].keywords == ["Streaming Platforms"]

    users = {u.email: u for u in store.active_users()}
    weekly = users["weekly@example.com"]
    assert weekly.delivery_day == 3
    assert weekly.delivery_time == time(8, 0)
    assert weekly.article_count == 15
    assert users["daily@example.com"].delivery_day is None
    assert users["daily@example.com"].article_count == 5


def test_reseeding_skips_existing_rows(store):
    seed_store(store, SEED)
    stats = seed_store(store, SEED)

    assert stats.sources_added == 0
    assert stats.sources_skipped == 1
    assert stats.users_skipped == 2


def test_day_number_mapping():
    assert day_number("Sunday") == 0
    assert day_number("saturday") == 6
    assert day_number("someday") == 1
    assert day_number(4) == 4
    assert day_number(9) == 1


def test_unknown_frequency_is_rejected(store):
    with pytest.raises(ConfigurationError, match="frequency"):
        seed_store(store, {"users": [{"email": "x@example.com", "frequency": "hourly"}]})


def test_sexagesimal_delivery_time(store):
    seed_store(store, {"users": [{"email": "x@example.com", "frequency": "daily", "delivery_time": 540}]})
    assert store.active_users()[0].delivery_time == time(9, 0)


def test_load_seed_file(tmp_path):
    path = tmp_path / "newsletter.yaml"
    path.write_text(
        "sources:\n  - name: Deadline\n    url: https://deadline.example/feed\n    type: aggregator\n",
        encoding="utf-8",
    )
    raw = load_seed_file(path)
    assert raw["sources"][0]["type"] == "aggregator"

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_seed_file(path)
