"""
Delivery stage: send each due user a digest at most once per day.

For every active user the stage checks the schedule, then the idempotency
fence (an existing `sent` delivery for today), selects articles, renders,
sends and records the outcome. The send happens before the success record,
so a crash between the two can cause a duplicate email on the next run;
the store's unique index still keeps a single `sent` row per day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging

from ..config import AppConfig
from ..core.types import User
from ..logging_utils import get_logger, log_event
from ..mail.sender import MailSender
from ..renderer import format_long_date, render_digest, render_digest_text
from ..schedule import is_due_today
from ..store.repository import Store
from .selection import select_articles

logger = get_logger(__name__)


@dataclass
class DeliveryStats:
    users_processed: int = 0
    skipped_not_due: int = 0
    skipped_already_sent: int = 0
    skipped_no_articles: int = 0
    sent: int = 0
    failed: int = 0


def build_subject(title: str, today: date) -> str:
    return f"{title} - {format_long_date(today)}"


def run_delivery(
    store: Store,
    sender: MailSender,
    cfg: AppConfig,
    now: datetime | None = None,
) -> DeliveryStats:
    now = now or datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    stats = DeliveryStats()
    users = store.active_users()
    log_event(logger, f"Found {len(users)} active users", event="delivery_start", users=len(users), date=today.isoformat())

    for user in users:
        stats.users_processed += 1
        if not is_due_today(user, today):
            stats.skipped_not_due += 1
            logger.debug("Skipping %s, not due on %s", user.email, today)
            continue
        if store.has_sent_delivery(user.email, today):
            stats.skipped_already_sent += 1
            logger.info("Newsletter already sent to %s on %s", user.email, today)
            continue
        deliver_to_user(store, sender, cfg, user, now, today, stats)

    log_event(
        logger,
        f"Delivered newsletters to {stats.sent} users",
        event="delivery_complete",
        sent=stats.sent,
        failed=stats.failed,
        skipped_not_due=stats.skipped_not_due,
        skipped_already_sent=stats.skipped_already_sent,
        skipped_no_articles=stats.skipped_no_articles,
    )
    return stats


def deliver_to_user(
    store: Store,
    sender: MailSender,
    cfg: AppConfig,
    user: User,
    now: datetime,
    today: date,
    stats: DeliveryStats,
) -> None:
    """Select, render, send and record one user's digest.

    Failures are recorded as a `failed` delivery row and never propagate.
    """
    try:
        articles = select_articles(store, user, now, cfg)
        if not articles:
            stats.skipped_no_articles += 1
            logger.info("No new articles for %s", user.email)
            return
        title = cfg.newsletter.title
        html = render_digest(user, articles, title, today)
        text = render_digest_text(user, articles, title, today)
        sender.send(user.email, build_subject(title, today), html, text=text)
        created = store.record_delivery_success(user, articles, today, sent_at=now)
    except Exception as exc:  # noqa: BLE001
        stats.failed += 1
        log_event(
            logger,
            f"Error sending to {user.email}: {exc}",
            level=logging.ERROR,
            event="delivery_failed",
            user_email=user.email,
        )
        try:
            store.record_delivery_failure(user.email, today, str(exc) or exc.__class__.__name__)
        except Exception:  # noqa: BLE001
            logger.exception("Could not record failed delivery for %s", user.email)
        return

    stats.sent += 1
    log_event(
        logger,
        f"Newsletter sent to {user.email}",
        event="delivery_sent",
        user_email=user.email,
        articles=len(articles),
        markers=created,
    )
