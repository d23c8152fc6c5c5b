"""Feed retrieval and decoding."""

from .decoder import clean_text, decode_feed
from .fetcher import FeedFetcher, FetchResult, fetch_url

__all__ = ["FeedFetcher", "FetchResult", "clean_text", "decode_feed", "fetch_url"]
