"""Probe Atom feeds for entries before they are published to FreshRSS."""

from __future__ import annotations

import asyncio
import io

import feedparser
import httpx

from starfeed.logging import get_logger, log_debug, log_error

logger = get_logger(__name__)


def feed_has_entries(content: bytes) -> bool:
    """Return whether ``content`` is a well-formed feed with at least one entry.

    Malformed documents count as empty even when feedparser recovers some
    entries from them.
    """
    parsed = feedparser.parse(io.BytesIO(content))
    bozo_exception = parsed.get("bozo_exception")
    # Encoding overrides are recoverable; anything else means broken XML
    if parsed.bozo and not isinstance(
        bozo_exception, feedparser.CharacterEncodingOverride
    ):
        log_error(logger, "Error parsing feed document: %s", bozo_exception)
        return False
    return len(parsed.entries) > 0


class AtomFeedProber:
    """Fetch a feed over HTTP and report whether it has entries.

    :meth:`has_entries` never raises for invalid URLs, transport errors, bad
    statuses or unparseable documents; each is logged and reported as
    ``False``.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the prober with an optional shared HTTP client."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s, follow_redirects=True
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def has_entries(self, feed_url: str) -> bool:
        """Return ``True`` when ``feed_url`` serves a feed with entries."""
        try:
            response = await self._client.get(feed_url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            log_error(logger, "Error requesting Atom feed %s: %s", feed_url, exc)
            return False

        if not response.is_success:
            log_error(
                logger,
                "Atom feed %s returned HTTP %d",
                feed_url,
                response.status_code,
            )
            return False

        # feedparser is synchronous; keep large documents off the event loop
        has_entries = await asyncio.to_thread(feed_has_entries, response.content)
        log_debug(logger, "Atom feed %s has entries: %s", feed_url, has_entries)
        return has_entries
