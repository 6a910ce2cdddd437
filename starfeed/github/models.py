"""Domain model for starred GitHub repositories."""

from __future__ import annotations

import dataclasses

RELEASES_FEED_SUFFIX = "/releases.atom"


def release_feed_url(html_url: str) -> str:
    """Return the Atom release feed URL for a repository web URL."""
    return f"{html_url}{RELEASES_FEED_SUFFIX}"


@dataclasses.dataclass(frozen=True, slots=True)
class Repo:
    """A repository the authenticated user has starred.

    Only ``name`` and ``html_url`` take part in reconciliation; the feed URL is
    derived from ``html_url`` and is the key matched against subscriptions.
    """

    name: str
    html_url: str
    full_name: str | None = None
    id: int | None = None

    @property
    def feed_url(self) -> str:
        """Return the repository's release feed URL."""
        return release_feed_url(self.html_url)
