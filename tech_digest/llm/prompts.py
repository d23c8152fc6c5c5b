"""Prompt loading and rendering helpers for the scoring oracle."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"
_NO_CONTENT = "No content available"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def build_relevance_prompt(title: str, content: str, source_name: str, max_chars: int = 500) -> str:
    return _render_template(
        "relevance",
        title=title,
        content=content[:max_chars] or _NO_CONTENT,
        source=source_name,
    )


def build_summary_prompt(title: str, content: str, max_chars: int = 1000) -> str:
    return _render_template(
        "summary",
        title=title,
        content=content[:max_chars] or _NO_CONTENT,
    )
