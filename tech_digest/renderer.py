"""
Digest rendering for HTML and plain-text email bodies.

The HTML body comes from the packaged Jinja2 template `templates/digest.html`
with autoescaping enabled, so titles and summaries from feeds cannot inject
markup. The plain-text body is built directly and used as the MIME
alternative.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .core.types import Article, User

_TEMPLATE_DIR = Path(__file__).parent / "templates"
_env: Environment | None = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(_TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )
    return _env


def format_long_date(day: date) -> str:
    """Format as "October 19, 2026" without a zero-padded day."""
    return f"{day.strftime('%B')} {day.day}, {day.year}"


def format_short_date(value: datetime | date | None) -> str:
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def _greeting_name(user: User) -> str:
    return user.name or "there"


def render_digest(user: User, articles: Sequence[Article], title: str, today: date) -> str:
    """Render the HTML digest for one user.

    Args:
        user: Recipient, used for the greeting
        articles: Selected articles in display order
        title: Newsletter title shown in the header
        today: Delivery date shown under the title

    Returns:
        Complete HTML document as a string
    """
    template = _environment().get_template("digest.html")
    return template.render(
        title=title,
        long_date=f"{today.strftime('%A')}, {format_long_date(today)}",
        greeting_name=_greeting_name(user),
        articles=[
            {
                "title": article.title,
                "url": article.url,
                "source_name": article.source_name,
                "published": format_short_date(article.published_at),
                "topic_category": article.topic_category,
                "summary": article.summary,
            }
            for article in articles
        ],
        total=len(articles),
    )


def render_digest_text(user: User, articles: Sequence[Article], title: str, today: date) -> str:
    lines = [
        title,
        f"Your curated update for {today.strftime('%A')}, {format_long_date(today)}",
        "",
        f"Hi {_greeting_name(user)},",
        f"Here are the top {len(articles)} streaming industry updates selected for you:",
        "",
    ]
    for article in articles:
        lines.append(article.title)
        meta = [article.source_name, format_short_date(article.published_at), article.topic_category]
        lines.append(" | ".join(part for part in meta if part))
        if article.summary:
            lines.append(article.summary)
        lines.append(f"Read full article: {article.url}")
        lines.append("")
    lines.append("This newsletter was automatically curated for you based on your interests.")
    return "\n".join(lines)
