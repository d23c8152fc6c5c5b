"""
Tech Digest - personalized industry newsletter pipeline.

This package gathers articles from RSS feeds and news aggregators, rates
and summarizes them with an LLM, and emails each subscriber a digest of
the most relevant articles they have not received yet.

Main entry point is the CLI via the `tech-digest` command.

Example:
    $ tech-digest init-db
    $ tech-digest seed --file newsletter.yaml
    $ tech-digest run-all
"""

__all__ = ["__version__", "categorize", "is_due_today", "Store"]
__version__ = "0.1.0"

from .categorizer import categorize
from .schedule import is_due_today
from .store.repository import Store
