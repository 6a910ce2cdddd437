"""Collaborator protocols consumed by the reconciler and sync pass."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from starfeed.github.models import Repo


@typ.runtime_checkable
class StarredRepoSource(typ.Protocol):
    """Source of the user's starred repositories.

    Examples
    --------
    >>> from starfeed.github import GitHubStarredClient, GitHubStarredConfig
    >>> source: StarredRepoSource = GitHubStarredClient(
    ...     GitHubStarredConfig(token="ghp_example")
    ... )
    >>> isinstance(source, StarredRepoSource)
    True

    """

    async def list_starred_repos(self) -> dict[str, Repo]:
        """Return starred repositories keyed by release feed URL.

        Raises on transport failure, non-200 responses and undecodable pages.
        """
        ...


@typ.runtime_checkable
class FeedProber(typ.Protocol):
    """Reports whether a feed currently has entries."""

    async def has_entries(self, feed_url: str) -> bool:
        """Return ``True`` when the feed has at least one entry.

        Implementations must not raise: any failure reads as ``False``.
        """
        ...


@typ.runtime_checkable
class SubscriptionStore(typ.Protocol):
    """Remote store holding feed subscriptions."""

    async def authenticate(self) -> None:
        """Establish a session; must succeed before any other call."""
        ...

    async def list_subscriptions(self) -> cabc.Mapping[str, object]:
        """Return existing subscriptions keyed by feed URL."""
        ...

    async def add_subscription(
        self, feed_url: str, display_name: str, category: str
    ) -> None:
        """Subscribe to ``feed_url`` under ``category``."""
        ...

    async def remove_subscription(self, feed_url: str) -> None:
        """Unsubscribe from ``feed_url``."""
        ...
