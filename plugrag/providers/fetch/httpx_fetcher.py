"""URL content fetcher using httpx.

Streams the response body so the byte ceiling is enforced while reading,
and runs the whole fetch under one deadline.  On timeout the in-flight
request task is cancelled, which exits the ``stream`` context and closes the
connection before :class:`FetchTimeoutError` propagates.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from plugrag.interfaces.content_fetcher import FetchedContent, IContentFetcher
from plugrag.utils.errors import ContentTooLargeError, FetchError, FetchTimeoutError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; PlugRAG-Bot/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class HttpxContentFetcher(IContentFetcher):
    """Fetches web content through an ``httpx.AsyncClient``.

    A client passed in by the caller is left open on :meth:`aclose`; a client
    created here is owned and closed by this fetcher.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
    ) -> None:
        headers = dict(_DEFAULT_HEADERS)
        if user_agent:
            headers["User-Agent"] = user_agent
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers=headers,
            follow_redirects=True,
        )

    async def __aenter__(self) -> HttpxContentFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # IContentFetcher implementation
    # ------------------------------------------------------------------

    async def fetch(
        self,
        url: str,
        *,
        timeout: float,
        max_bytes: int,
        allow_truncation: bool = False,
    ) -> FetchedContent:
        try:
            result = await asyncio.wait_for(
                self._fetch(url, timeout, max_bytes, allow_truncation),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("url_fetch_timeout", url=url, timeout=timeout)
            raise FetchTimeoutError(
                message=f"Request to {url} timed out after {timeout:g}s",
                url=url,
                timeout=timeout,
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("url_fetch_http_error", url=url, status_code=status)
            raise FetchError(
                message=f"HTTP {status} for {url}",
                url=url,
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("url_fetch_failed", url=url, error=str(exc))
            raise FetchError(message=f"HTTP error fetching {url}: {exc}", url=url) from exc

        logger.info(
            "url_fetched",
            url=result.url,
            status_code=result.status_code,
            content_type=result.content_type,
            bytes=len(result.content),
            truncated=result.truncated,
        )
        return result

    def get_provider_name(self) -> str:
        return "httpx"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        url: str,
        timeout: float,
        max_bytes: int,
        allow_truncation: bool,
    ) -> FetchedContent:
        async with self._client.stream("GET", url, timeout=timeout) as response:
            response.raise_for_status()

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > max_bytes and not allow_truncation:
                raise ContentTooLargeError(
                    message=f"Content-Length {declared} exceeds limit of {max_bytes} bytes",
                    limit=max_bytes,
                )

            body = bytearray()
            truncated = False
            async for piece in response.aiter_bytes():
                body.extend(piece)
                if len(body) > max_bytes:
                    if not allow_truncation:
                        raise ContentTooLargeError(
                            message=f"Content from {url} exceeds limit of {max_bytes} bytes",
                            limit=max_bytes,
                        )
                    del body[max_bytes:]
                    truncated = True
                    break

            content_type, encoding = _parse_content_type(response.headers.get("content-type"))
            return FetchedContent(
                url=str(response.url),
                content=bytes(body),
                content_type=content_type,
                encoding=encoding or response.charset_encoding,
                status_code=response.status_code,
                truncated=truncated,
            )


def _parse_content_type(header: str | None) -> tuple[str | None, str | None]:
    """Split ``text/html; charset=utf-8`` into ``("text/html", "utf-8")``."""
    if not header:
        return None, None
    parts = [p.strip() for p in header.split(";")]
    mime = parts[0].lower() or None
    charset = None
    for param in parts[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value:
            charset = value.strip().strip('"').lower()
    return mime, charset
