"""Reconcile starred repositories with release-feed subscriptions."""

from __future__ import annotations

import asyncio
import typing as typ

from .filters import filter_release_feeds
from .models import ActionFailure, ActionKind, ReconcilePlan, ReconcileResult
from .observability import SyncEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from starfeed.github.models import Repo

    from .protocol import FeedProber, SubscriptionStore

DEFAULT_CATEGORY = "Github"
DEFAULT_MAX_CONCURRENCY = 8


class _ActionOutcome(typ.NamedTuple):
    """What a single add/remove task reports back to the join point."""

    feed_url: str
    action: ActionKind
    applied: bool
    error: Exception | None = None


def plan_reconciliation(
    starred: cabc.Mapping[str, Repo],
    existing: cabc.Mapping[str, object],
) -> ReconcilePlan:
    """Compute the add/remove diff between ``starred`` and ``existing``.

    Foreign subscriptions are dropped from ``existing`` before diffing, even
    when the caller has filtered already, so they can never be removed.
    """
    managed = filter_release_feeds(existing)
    to_add = {
        feed_url: repo for feed_url, repo in starred.items() if feed_url not in managed
    }
    to_remove = tuple(feed_url for feed_url in managed if feed_url not in starred)
    return ReconcilePlan(
        to_add=to_add,
        to_remove=to_remove,
        unchanged=len(managed) - len(to_remove),
        foreign=len(existing) - len(managed),
    )


def _collect_outcomes(
    gathered: list[_ActionOutcome | BaseException],
    result: ReconcileResult,
) -> None:
    """Fold task outcomes into ``result``.

    Raises
    ------
    BaseException
        Re-raised for anything that is not a regular ``Exception``
        (cancellation, ``KeyboardInterrupt``).

    """
    for outcome in gathered:
        if isinstance(outcome, BaseException):
            # Tasks trap Exception themselves; anything arriving here is fatal
            raise outcome
        if outcome.error is not None:
            result.failures.append(
                ActionFailure(
                    feed_url=outcome.feed_url,
                    action=outcome.action,
                    error=outcome.error,
                )
            )
        elif not outcome.applied:
            result.skipped_empty += 1
        elif outcome.action is ActionKind.ADD:
            result.added += 1
        else:
            result.removed += 1


class Reconciler:
    """Apply the starred/subscribed diff to a subscription store.

    Each feed URL in the plan becomes one task. Tasks run concurrently, but no
    more than ``max_concurrency`` of them talk to the network at once. A failing
    task is logged and recorded; it never stops its siblings.

    Examples
    --------
    >>> reconciler = Reconciler(store, prober, max_concurrency=4)
    >>> result = await reconciler.reconcile(starred, existing)
    >>> result.added, result.removed

    """

    def __init__(
        self,
        store: SubscriptionStore,
        prober: FeedProber,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        category: str = DEFAULT_CATEGORY,
        event_logger: SyncEventLogger | None = None,
    ) -> None:
        """Initialise with collaborators and the concurrency bound."""
        if max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {max_concurrency}"
            raise ValueError(msg)
        self._store = store
        self._prober = prober
        self._max_concurrency = max_concurrency
        self._category = category
        self._events = event_logger or SyncEventLogger()

    async def reconcile(
        self,
        starred: cabc.Mapping[str, Repo],
        existing: cabc.Mapping[str, object],
    ) -> ReconcileResult:
        """Subscribe new release feeds and unsubscribe unstarred ones.

        Parameters
        ----------
        starred
            Starred repositories keyed by release feed URL.
        existing
            Current subscriptions keyed by feed URL. The store must already
            be authenticated.

        Returns
        -------
        ReconcileResult
            Counters for every action plus the individual failures.

        """
        plan = plan_reconciliation(starred, existing)
        result = ReconcileResult(
            unchanged=plan.unchanged, foreign_ignored=plan.foreign
        )
        if plan.is_empty:
            return result

        semaphore = asyncio.Semaphore(self._max_concurrency)
        coroutines: list[cabc.Awaitable[_ActionOutcome]] = [
            self._add(semaphore, feed_url, repo)
            for feed_url, repo in plan.to_add.items()
        ]
        coroutines.extend(
            self._remove(semaphore, feed_url) for feed_url in plan.to_remove
        )

        gathered = await asyncio.gather(*coroutines, return_exceptions=True)
        _collect_outcomes(gathered, result)
        return result

    async def _add(
        self, semaphore: asyncio.Semaphore, feed_url: str, repo: Repo
    ) -> _ActionOutcome:
        async with semaphore:
            try:
                if not await self._prober.has_entries(feed_url):
                    self._events.log_feed_skipped(feed_url)
                    return _ActionOutcome(feed_url, ActionKind.ADD, applied=False)
                await self._store.add_subscription(
                    feed_url, repo.name, self._category
                )
            except Exception as exc:  # noqa: BLE001 - one feed must not sink the pass
                self._events.log_feed_failed(feed_url, ActionKind.ADD, exc)
                return _ActionOutcome(feed_url, ActionKind.ADD, False, exc)

        self._events.log_feed_added(feed_url, repo.name)
        return _ActionOutcome(feed_url, ActionKind.ADD, applied=True)

    async def _remove(
        self, semaphore: asyncio.Semaphore, feed_url: str
    ) -> _ActionOutcome:
        async with semaphore:
            try:
                await self._store.remove_subscription(feed_url)
            except Exception as exc:  # noqa: BLE001 - one feed must not sink the pass
                self._events.log_feed_failed(feed_url, ActionKind.REMOVE, exc)
                return _ActionOutcome(feed_url, ActionKind.REMOVE, False, exc)

        self._events.log_feed_removed(feed_url)
        return _ActionOutcome(feed_url, ActionKind.REMOVE, applied=True)
