"""Recognise subscriptions that starfeed itself manages.

Only GitHub release feeds are reconciliation candidates. Every other
subscription is foreign and must never be removed.
"""

from __future__ import annotations

import re
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

RELEASE_FEED_PATTERN = re.compile(
    r"^https://github\.com/[\w.-]+/[\w.-]+/releases\.atom$", re.ASCII
)


def is_release_feed(feed_url: str) -> bool:
    """Return whether ``feed_url`` has the GitHub release feed shape."""
    return RELEASE_FEED_PATTERN.fullmatch(feed_url) is not None


_V = typ.TypeVar("_V")


def filter_release_feeds(
    subscriptions: cabc.Mapping[str, _V],
) -> dict[str, _V]:
    """Return only the subscriptions whose feed URL is a release feed."""
    return {
        feed_url: value
        for feed_url, value in subscriptions.items()
        if is_release_feed(feed_url)
    }
