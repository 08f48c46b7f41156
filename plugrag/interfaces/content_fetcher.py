"""Abstract base class for URL content fetchers.

URL extraction is the only suspending path of the ingestion core.  The fetch
capability is injected so tests and workers can supply their own transport;
every implementation must honour a timeout and a maximum-bytes ceiling.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedContent:
    """Raw bytes fetched from a URL plus the response details extraction needs.

    Attributes
    ----------
    url:
        Final URL after redirects.
    content:
        Response body, at most ``max_bytes`` long.
    content_type:
        MIME type from the ``Content-Type`` header without parameters.
    encoding:
        Charset from the ``Content-Type`` header, if declared.
    status_code:
        HTTP status of the final response.
    truncated:
        True when the body was cut at ``max_bytes`` (only when allowed).
    """

    url: str
    content: bytes
    content_type: str | None = None
    encoding: str | None = None
    status_code: int = 200
    truncated: bool = False


class IContentFetcher(ABC):
    """Contract for fetching web content with a deadline and a size ceiling."""

    @abstractmethod
    async def fetch(
        self,
        url: str,
        *,
        timeout: float,
        max_bytes: int,
        allow_truncation: bool = False,
    ) -> FetchedContent:
        """Fetch *url* and return its body.

        Parameters
        ----------
        url:
            Absolute http(s) URL.
        timeout:
            Deadline in seconds for the whole fetch, body included.
        max_bytes:
            Maximum number of body bytes to read.
        allow_truncation:
            When True, a larger body is cut at *max_bytes* and flagged;
            otherwise the fetch fails.

        Raises
        ------
        plugrag.utils.errors.FetchTimeoutError
            If the deadline passes.  No connection is left open.
        plugrag.utils.errors.ContentTooLargeError
            If the body exceeds *max_bytes* and truncation is not allowed.
        plugrag.utils.errors.FetchError
            For HTTP error statuses and transport failures.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
