"""Starred-repository source backed by the GitHub REST API."""

from __future__ import annotations

from .client import GitHubStarredClient, GitHubStarredConfig
from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import RELEASES_FEED_SUFFIX, Repo, release_feed_url

__all__ = [
    "RELEASES_FEED_SUFFIX",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubResponseShapeError",
    "GitHubStarredClient",
    "GitHubStarredConfig",
    "Repo",
    "release_feed_url",
]
