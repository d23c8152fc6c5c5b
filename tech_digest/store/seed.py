"""
Seed the store with sources and subscribers from a YAML file.

Expected layout (`rss_sources` is accepted as an alias of `sources`):

    sources:
      - name: Variety Tech
        url: https://news.google.com/rss/search?q=streaming
        category: Streaming Platforms
        type: aggregator
        active: true
    users:
      - email: reader@example.com
        name: Reader
        topics: [streaming, ai]
        frequency: weekly
        delivery_day: monday
        delivery_time: "08:00"
        article_count: 5

Both lists are insert-or-skip, keyed on the source URL and the user email.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from pathlib import Path
from typing import Any

import yaml

from ..core.types import DEFAULT_DELIVERY_DAY, Frequency, Source, SourceType, User, clamp_article_count
from ..errors import ConfigurationError
from ..logging_utils import get_logger
from .repository import Store

logger = get_logger(__name__)

DAY_NUMBERS = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}


@dataclass
class SeedStats:
    sources_added: int = 0
    sources_skipped: int = 0
    users_added: int = 0
    users_skipped: int = 0


def day_number(value: Any) -> int:
    """Map a weekday name or ordinal to 0 = Sunday ... 6 = Saturday; Monday if unknown."""
    if isinstance(value, int) and 0 <= value <= 6:
        return value
    if isinstance(value, str):
        return DAY_NUMBERS.get(value.strip().lower(), DEFAULT_DELIVERY_DAY)
    return DEFAULT_DELIVERY_DAY


def load_seed_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Seed file {path} must contain a mapping")
    return raw


def seed_store(store: Store, raw: dict[str, Any]) -> SeedStats:
    stats = SeedStats()

    for entry in raw.get("sources") or raw.get("rss_sources") or []:
        if not entry.get("active", True):
            continue
        source = _source_from_entry(entry)
        if store.insert_source(source):
            stats.sources_added += 1
            logger.info("Added source %s", source.name)
        else:
            stats.sources_skipped += 1

    for entry in raw.get("users") or []:
        user = _user_from_entry(entry)
        if store.insert_user(user):
            stats.users_added += 1
            logger.info("Added user %s", user.email)
        else:
            stats.users_skipped += 1

    return stats


def _source_from_entry(entry: dict[str, Any]) -> Source:
    try:
        name = entry["name"]
        url = entry["url"]
    except KeyError as exc:
        raise ConfigurationError(f"Source entry missing field: {exc.args[0]}") from None
    keywords = entry.get("keywords") or ([entry["category"]] if entry.get("category") else [])
    try:
        source_type = SourceType(entry.get("type", SourceType.FEED.value))
    except ValueError:
        raise ConfigurationError(f"Unsupported source type for {name}: {entry.get('type')}") from None
    return Source(id=None, name=name, url=url, source_type=source_type, keywords=list(keywords))


def _user_from_entry(entry: dict[str, Any]) -> User:
    email = entry.get("email")
    if not email:
        raise ConfigurationError("User entry missing field: email")
    frequency = str(entry.get("frequency", Frequency.WEEKLY.value)).lower()
    if frequency not in {item.value for item in Frequency}:
        raise ConfigurationError(f"Unsupported frequency for {email}: {frequency}")
    delivery_day = entry.get("delivery_day")
    return User(
        id=None,
        email=email,
        name=entry.get("name"),
        topics=list(entry.get("topics") or []),
        frequency=frequency,
        delivery_day=day_number(delivery_day) if delivery_day is not None else None,
        delivery_time=_parse_time(entry.get("delivery_time")),
        article_count=clamp_article_count(entry.get("article_count")),
    )


def _parse_time(value: Any) -> time | None:
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads unquoted 08:00 as sexagesimal minutes
        return time(value // 60 % 24, value % 60)
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ConfigurationError(f"Invalid delivery_time: {value}") from None
