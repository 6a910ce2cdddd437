"""FreshRSS subscription store.

Usage
-----
Authenticate and list existing subscriptions::

    from starfeed.freshrss import FreshRSSClient, FreshRSSConfig

    client = FreshRSSClient(
        FreshRSSConfig(base_url="https://rss.example.org", user="me", api_token="...")
    )
    await client.authenticate()
    subscriptions = await client.list_subscriptions()

"""

from __future__ import annotations

from .client import FreshRSSClient, FreshRSSConfig, parse_client_login
from .errors import (
    FreshRSSAPIError,
    FreshRSSAuthError,
    FreshRSSError,
    FreshRSSResponseShapeError,
)
from .models import Subscription

__all__ = [
    "FreshRSSAPIError",
    "FreshRSSAuthError",
    "FreshRSSClient",
    "FreshRSSConfig",
    "FreshRSSError",
    "FreshRSSResponseShapeError",
    "Subscription",
    "parse_client_login",
]
