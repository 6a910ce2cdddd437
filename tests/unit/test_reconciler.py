"""Unit tests for the concurrent reconciler."""

from __future__ import annotations

import asyncio

import pytest

from starfeed.freshrss.errors import FreshRSSAPIError
from starfeed.reconcile import ActionKind, Reconciler
from tests.helpers.fakes import (
    FakeFeedProber,
    FakeLogger,
    FakeSubscriptionStore,
    feed_of,
    make_repo,
    starred_set,
)

_FOREIGN_FEED = "https://example.com/feed.xml"


def _reconciler(
    store: FakeSubscriptionStore,
    prober: FakeFeedProber,
    *,
    max_concurrency: int = 8,
) -> Reconciler:
    return Reconciler(store, prober, max_concurrency=max_concurrency)


@pytest.mark.asyncio
async def test_adds_starred_feed_with_entries() -> None:
    """A new starred feed with entries is subscribed under Github."""
    repo = make_repo("octo", "RepoA")
    store = FakeSubscriptionStore()
    prober = FakeFeedProber(feeds_with_entries={repo.feed_url})

    result = await _reconciler(store, prober).reconcile(starred_set(repo), {})

    assert store.added == [(repo.feed_url, "RepoA", "Github")]
    assert store.removed == []
    assert result.added == 1
    assert result.succeeded


@pytest.mark.asyncio
async def test_skips_starred_feed_without_entries() -> None:
    """Empty feeds are probed but never subscribed."""
    repo = make_repo("octo", "quiet")
    store = FakeSubscriptionStore()
    prober = FakeFeedProber()

    result = await _reconciler(store, prober).reconcile(starred_set(repo), {})

    assert prober.probed == [repo.feed_url]
    assert store.added == []
    assert result.skipped_empty == 1
    assert result.succeeded, "Skipping an empty feed is not a failure."


@pytest.mark.asyncio
async def test_removes_unstarred_release_feed() -> None:
    """A release feed that is no longer starred is unsubscribed."""
    stale = feed_of("octo", "RepoB")
    store = FakeSubscriptionStore(subscriptions={stale: True})

    result = await _reconciler(store, FakeFeedProber()).reconcile(
        {}, {stale: True}
    )

    assert store.removed == [stale]
    assert result.removed == 1


@pytest.mark.asyncio
async def test_never_removes_foreign_subscription() -> None:
    """Foreign feeds survive even when nothing is starred."""
    store = FakeSubscriptionStore(subscriptions={_FOREIGN_FEED: True})

    result = await _reconciler(store, FakeFeedProber()).reconcile(
        {}, {_FOREIGN_FEED: True}
    )

    assert store.removed == []
    assert result.foreign_ignored == 1


@pytest.mark.asyncio
async def test_feed_in_both_sets_is_left_alone() -> None:
    """Steady state issues neither adds nor removes, nor probes."""
    repo = make_repo("octo", "RepoA")
    prober = FakeFeedProber(feeds_with_entries={repo.feed_url})
    store = FakeSubscriptionStore(subscriptions={repo.feed_url: True})

    result = await _reconciler(store, prober).reconcile(
        starred_set(repo), {repo.feed_url: True}
    )

    assert store.added == []
    assert store.removed == []
    assert prober.probed == []
    assert result.unchanged == 1


@pytest.mark.asyncio
async def test_mixed_diff_issues_exactly_one_action_per_feed() -> None:
    """Every candidate gets exactly one action and nothing else is touched."""
    kept = make_repo("octo", "kept")
    new_full = make_repo("octo", "new-full")
    new_empty = make_repo("octo", "new-empty")
    gone = feed_of("octo", "gone")
    existing: dict[str, object] = {
        kept.feed_url: True,
        gone: True,
        _FOREIGN_FEED: True,
    }
    store = FakeSubscriptionStore(subscriptions=dict(existing))
    prober = FakeFeedProber(feeds_with_entries={kept.feed_url, new_full.feed_url})

    result = await _reconciler(store, prober).reconcile(
        starred_set(kept, new_full, new_empty), existing
    )

    assert store.added == [(new_full.feed_url, "new-full", "Github")]
    assert store.removed == [gone]
    assert (result.added, result.skipped_empty, result.removed) == (1, 1, 1)
    assert (result.unchanged, result.foreign_ignored) == (1, 1)


@pytest.mark.asyncio
async def test_empty_starred_removes_every_release_feed() -> None:
    """With nothing starred, all release feeds go and foreign ones stay."""
    feeds = [feed_of("octo", f"repo-{index}") for index in range(5)]
    existing: dict[str, object] = dict.fromkeys(feeds, True)
    existing[_FOREIGN_FEED] = True
    store = FakeSubscriptionStore(subscriptions=dict(existing))

    result = await _reconciler(store, FakeFeedProber()).reconcile({}, existing)

    assert sorted(store.removed) == sorted(feeds)
    assert store.subscriptions == {_FOREIGN_FEED: True}
    assert result.removed == len(feeds)


@pytest.mark.asyncio
async def test_single_failure_does_not_stop_siblings() -> None:
    """A failing add and a failing remove leave the other actions intact."""
    broken_add = make_repo("octo", "broken-add")
    fine_add = make_repo("octo", "fine-add")
    broken_remove = feed_of("octo", "broken-remove")
    fine_remove = feed_of("octo", "fine-remove")
    add_error = FreshRSSAPIError.http_error(500)
    remove_error = FreshRSSAPIError.network_error("connection reset")
    store = FakeSubscriptionStore(
        add_errors={broken_add.feed_url: add_error},
        remove_errors={broken_remove: remove_error},
        delay_s=0.001,
    )
    prober = FakeFeedProber(
        feeds_with_entries={broken_add.feed_url, fine_add.feed_url}
    )

    result = await _reconciler(store, prober).reconcile(
        starred_set(broken_add, fine_add),
        {broken_remove: True, fine_remove: True},
    )

    assert store.added == [(fine_add.feed_url, "fine-add", "Github")]
    assert store.removed == [fine_remove]
    assert result.added == 1
    assert result.removed == 1
    assert not result.succeeded
    failures = {(f.feed_url, f.action): f.error for f in result.failures}
    assert failures == {
        (broken_add.feed_url, ActionKind.ADD): add_error,
        (broken_remove, ActionKind.REMOVE): remove_error,
    }


@pytest.mark.asyncio
async def test_failures_are_logged_with_feed_url(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Per-item failures produce an ERROR event naming the feed."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("starfeed.reconcile.observability.logger", fake_logger)
    stale = feed_of("octo", "stale")
    store = FakeSubscriptionStore(
        remove_errors={stale: FreshRSSAPIError.http_error(503)}
    )

    await _reconciler(store, FakeFeedProber()).reconcile({}, {stale: True})

    errors = fake_logger.messages("ERROR")
    assert len(errors) == 1
    assert "[sync.feed.failed]" in errors[0]
    assert f"feed_url={stale}" in errors[0]
    assert "action=remove" in errors[0]
    assert "error_category=transient" in errors[0]


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    """No more than max_concurrency actions are in flight at once."""
    repos = [make_repo("octo", f"new-{index}") for index in range(10)]
    stale = {feed_of("octo", f"old-{index}"): True for index in range(10)}
    store = FakeSubscriptionStore(delay_s=0.01)
    prober = FakeFeedProber(feeds_with_entries={repo.feed_url for repo in repos})

    result = await _reconciler(store, prober, max_concurrency=3).reconcile(
        starred_set(*repos), stale
    )

    assert result.added == 10
    assert result.removed == 10
    assert store.max_in_flight <= 3
    assert store.max_in_flight > 1, "Expected actions to overlap."


@pytest.mark.asyncio
async def test_cancellation_propagates_to_in_flight_actions() -> None:
    """Cancelling a pass aborts blocked actions instead of leaking them."""
    store = FakeSubscriptionStore(block=asyncio.Event())
    stale = {feed_of("octo", f"old-{index}"): True for index in range(4)}
    task = asyncio.create_task(
        _reconciler(store, FakeFeedProber(), max_concurrency=2).reconcile(
            {}, stale
        )
    )
    while store.started < 2:
        await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.in_flight == 0
    assert store.removed == []


def test_rejects_non_positive_concurrency() -> None:
    """A zero bound would deadlock every pass."""
    with pytest.raises(ValueError, match="max_concurrency"):
        Reconciler(FakeSubscriptionStore(), FakeFeedProber(), max_concurrency=0)
