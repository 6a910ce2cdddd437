"""GitHub REST client that enumerates the authenticated user's starred repos."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from starfeed.logging import get_logger, log_debug

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import Repo

logger = get_logger(__name__)

_HTTP_OK = 200
_STARRED_PAGE_SIZE = 100


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubStarredConfig:
    """Configuration for the starred-repositories client."""

    token: str
    endpoint: str = "https://api.github.com/user/starred"
    timeout_s: float = 10.0
    user_agent: str = "starfeed/0.1"
    api_version: str = "2022-11-28"


class _StarredRepoPayload(msgspec.Struct):
    """Fields read from each element of ``GET /user/starred``."""

    name: str
    html_url: str
    id: int | None = None
    full_name: str | None = None


_starred_page_decoder = msgspec.json.Decoder(list[_StarredRepoPayload])


def _decode_starred_page(content: bytes) -> list[Repo]:
    try:
        payloads = _starred_page_decoder.decode(content)
    except msgspec.DecodeError as exc:
        raise GitHubResponseShapeError.undecodable(str(exc)) from exc
    return [
        Repo(
            name=payload.name,
            html_url=payload.html_url,
            full_name=payload.full_name,
            id=payload.id,
        )
        for payload in payloads
    ]


def _next_page_url(response: httpx.Response) -> str | None:
    """Return the ``rel="next"`` target from the Link header, if any."""
    next_link = response.links.get("next")
    if not next_link:
        return None
    url = next_link.get("url")
    return url or None


class GitHubStarredClient:
    """List starred repositories, following GitHub's Link-header pagination."""

    def __init__(
        self,
        config: GitHubStarredConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "X-GitHub-Api-Version": config.api_version,
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def list_starred_repos(self) -> dict[str, Repo]:
        """Return every starred repository keyed by its release feed URL.

        Raises
        ------
        GitHubAPIError
            If a page request fails or returns a non-200 status.
        GitHubResponseShapeError
            If a page body is not a list of repositories.

        """
        starred: dict[str, Repo] = {}
        url: str | None = self._config.endpoint
        params: dict[str, typ.Any] | None = {"per_page": _STARRED_PAGE_SIZE}

        while url is not None:
            log_debug(logger, "Querying GitHub starred repos page %s", url)
            response = await self._get(url, params)
            for repo in _decode_starred_page(response.content):
                starred[repo.feed_url] = repo
            url = _next_page_url(response)
            # The next link already carries the query string
            params = None

        return starred

    async def _get(
        self, url: str, params: dict[str, typ.Any] | None
    ) -> httpx.Response:
        try:
            response = await self._client.get(
                url, params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise GitHubAPIError.network_error(str(exc)) from exc
        if response.status_code != _HTTP_OK:
            raise GitHubAPIError.http_error(response.status_code)
        return response
