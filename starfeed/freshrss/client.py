"""FreshRSS subscription store speaking the Google Reader compatible API."""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx
import msgspec

from starfeed.logging import get_logger, log_debug, log_error, log_info

from .errors import FreshRSSAPIError, FreshRSSAuthError, FreshRSSResponseShapeError
from .models import (
    QuickAddPayload,
    Subscription,
    SubscriptionListPayload,
)

_T = typ.TypeVar("_T")

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

_GREADER_PATH = "/api/greader.php"
_LOGIN_PATH = f"{_GREADER_PATH}/accounts/ClientLogin"
_SUBSCRIPTION_PATH = f"{_GREADER_PATH}/reader/api/0/subscription"
_AUTH_PREFIX = "Auth="


@dataclasses.dataclass(frozen=True, slots=True)
class FreshRSSConfig:
    """Connection settings for a FreshRSS instance.

    Attributes
    ----------
    base_url
        Instance root, e.g. ``https://rss.example.org``.
    user
        FreshRSS user name; also used in category label stream ids.
    api_token
        API password configured in the FreshRSS profile. Never logged.
    timeout_s
        Per-request timeout in seconds.

    """

    base_url: str
    user: str
    api_token: str
    timeout_s: float = 10.0


def parse_client_login(body: str) -> str:
    """Extract the ``Auth=`` token from a ClientLogin plain-text body.

    Raises
    ------
    FreshRSSAuthError
        If no non-empty ``Auth=`` line is present.

    """
    token = ""
    for line in body.splitlines():
        if line.startswith(_AUTH_PREFIX):
            token = line.removeprefix(_AUTH_PREFIX).strip()
    if not token:
        raise FreshRSSAuthError.missing_token()
    return token


def _label_stream(user: str, category: str) -> str:
    return f"user/{user}/label/{category}"


def _feed_stream(feed_url: str) -> str:
    return f"feed/{feed_url}"


class FreshRSSClient:
    """Authenticate against FreshRSS and manage feed subscriptions.

    The session token is written once by :meth:`authenticate` and only read by
    later calls, so one client can serve many concurrent reconciliation tasks.
    """

    def __init__(
        self,
        config: FreshRSSConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; no request is made until authentication."""
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)
        self._auth_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        """Return whether a session token has been obtained."""
        return self._auth_token is not None

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def authenticate(self) -> None:
        """Obtain a session token via ClientLogin.

        Raises
        ------
        FreshRSSAPIError
            If the request fails or returns a non-2xx status.
        FreshRSSAuthError
            If the response does not carry an ``Auth=`` token.

        """
        log_debug(logger, "Authenticating with FreshRSS at %s", self._base_url)
        response = await self._send(
            "POST",
            _LOGIN_PATH,
            data={"Email": self._config.user, "Passwd": self._config.api_token},
            authenticated=False,
        )
        self._auth_token = parse_client_login(response.text)
        log_info(logger, "Authenticated with FreshRSS")

    async def list_subscriptions(self) -> dict[str, Subscription]:
        """Return every subscription keyed by feed URL."""
        response = await self._send(
            "GET", f"{_SUBSCRIPTION_PATH}/list", params={"output": "json"}
        )
        payload = self._decode(response, SubscriptionListPayload, "subscription/list")
        return {
            item.url: Subscription(
                feed_url=item.url, stream_id=item.id, title=item.title
            )
            for item in payload.subscriptions
        }

    async def add_subscription(
        self, feed_url: str, display_name: str, category: str
    ) -> None:
        """Subscribe to ``feed_url`` and file it under ``category``.

        FreshRSS assigns the stream id during ``quickadd``; the follow-up
        ``edit`` call renames the stream and attaches the category label.
        """
        response = await self._send(
            "POST", f"{_SUBSCRIPTION_PATH}/quickadd", data={"quickadd": feed_url}
        )
        added = self._decode(response, QuickAddPayload, "subscription/quickadd")
        await self._send(
            "POST",
            f"{_SUBSCRIPTION_PATH}/edit",
            data={
                "ac": "edit",
                "s": added.stream_id,
                "t": display_name,
                "a": _label_stream(self._config.user, category),
            },
        )
        log_info(logger, "Successfully added feed %s to FreshRSS", feed_url)

    async def remove_subscription(self, feed_url: str) -> None:
        """Unsubscribe from ``feed_url``."""
        await self._send(
            "POST",
            f"{_SUBSCRIPTION_PATH}/edit",
            data={"ac": "unsubscribe", "s": _feed_stream(feed_url)},
        )
        log_info(logger, "Removed feed %s from FreshRSS", feed_url)

    def _decode(
        self, response: httpx.Response, payload_type: type[_T], endpoint: str
    ) -> _T:
        try:
            return msgspec.json.decode(response.content, type=payload_type)
        except msgspec.DecodeError as exc:
            log_error(logger, "Unable to parse FreshRSS %s response", endpoint)
            raise FreshRSSResponseShapeError.undecodable(
                endpoint, response.content
            ) from exc

    async def _send(
        self,
        method: str,
        path: str,
        *,
        data: cabc.Mapping[str, str] | None = None,
        params: cabc.Mapping[str, str] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if authenticated:
            if not self.is_authenticated:
                raise FreshRSSAuthError.not_authenticated()
            headers["Authorization"] = f"GoogleLogin auth={self._auth_token}"

        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                data=data,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise FreshRSSAPIError.network_error(str(exc)) from exc

        if not response.is_success:
            raise FreshRSSAPIError.http_error(response.status_code)
        return response
