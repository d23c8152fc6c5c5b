"""
Keyword-based topic categorization.

Articles are labelled by case-insensitive substring matching of the title
and content against an ordered rule table. The first rule with a matching
keyword wins, so rule order decides ties between overlapping keyword sets.
"""

from __future__ import annotations


DEFAULT_CATEGORY = "General Streaming Industry"

CATEGORY_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Gen AI in Content", ("ai", "artificial intelligence", "machine learning")),
    ("Dubbing Technology", ("dub", "localization", "translation")),
    ("Production Tools", ("production", "post-production", "editing")),
    ("Streaming Platforms", ("netflix", "disney", "amazon", "prime")),
)


def categorize(title: str, content: str | None = None) -> str:
    """Return the topic label for an article.

    Args:
        title: Article headline
        content: Article body or snippet, may be empty

    Returns:
        The label of the first rule whose keywords occur in the text,
        or DEFAULT_CATEGORY when none do

    Examples:
        >>> categorize("Netflix adopts machine learning for dubbing")
        'Gen AI in Content'
        >>> categorize("Quarterly box office results")
        'General Streaming Industry'
    """
    text = f"{title or ''} {content or ''}".lower()
    for label, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return label
    return DEFAULT_CATEGORY


def categories() -> list[str]:
    """All labels the categorizer can produce, in precedence order."""
    return [label for label, _ in CATEGORY_RULES] + [DEFAULT_CATEGORY]
