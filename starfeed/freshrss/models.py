"""Typed FreshRSS subscription models and wire payloads."""

from __future__ import annotations

import dataclasses

import msgspec


@dataclasses.dataclass(frozen=True, slots=True)
class Subscription:
    """A feed the FreshRSS user is subscribed to.

    ``stream_id`` is assigned by FreshRSS (``feed/<n>``) and is opaque to
    starfeed.
    """

    feed_url: str
    stream_id: str
    title: str | None = None


class SubscriptionPayload(msgspec.Struct):
    """One element of ``subscription/list``."""

    url: str
    id: str = ""
    title: str | None = None


class SubscriptionListPayload(msgspec.Struct):
    """Body of ``subscription/list?output=json``."""

    subscriptions: list[SubscriptionPayload] = msgspec.field(default_factory=list)


class QuickAddPayload(msgspec.Struct, rename="camel"):
    """Body returned by ``subscription/quickadd``."""

    stream_id: str
    num_results: int = 0
    query: str | None = None
    stream_name: str | None = None
