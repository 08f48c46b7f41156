"""URL fetcher implementations."""

from plugrag.providers.fetch.httpx_fetcher import HttpxContentFetcher

__all__ = ["HttpxContentFetcher"]
