"""Reconciliation of GitHub stars with FreshRSS release-feed subscriptions.

The reconciler diffs two unordered collections keyed by feed URL:

- starred repositories, each owning a release feed URL
- existing subscriptions, restricted to GitHub release feeds

Feeds that are starred but not subscribed are added when they have entries;
release feeds that are subscribed but no longer starred are removed. Other
subscriptions are never touched.
"""

from starfeed.reconcile.errors import ReconcileError, SyncPassError, SyncStage
from starfeed.reconcile.filters import (
    RELEASE_FEED_PATTERN,
    filter_release_feeds,
    is_release_feed,
)
from starfeed.reconcile.models import (
    ActionFailure,
    ActionKind,
    ReconcilePlan,
    ReconcileResult,
)
from starfeed.reconcile.observability import (
    ErrorCategory,
    SyncEventLogger,
    SyncEventType,
    categorize_error,
)
from starfeed.reconcile.protocol import FeedProber, StarredRepoSource, SubscriptionStore
from starfeed.reconcile.service import (
    DEFAULT_CATEGORY,
    DEFAULT_MAX_CONCURRENCY,
    Reconciler,
    plan_reconciliation,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_MAX_CONCURRENCY",
    "RELEASE_FEED_PATTERN",
    "ActionFailure",
    "ActionKind",
    "ErrorCategory",
    "FeedProber",
    "ReconcileError",
    "ReconcilePlan",
    "ReconcileResult",
    "Reconciler",
    "StarredRepoSource",
    "SubscriptionStore",
    "SyncEventLogger",
    "SyncEventType",
    "SyncPassError",
    "SyncStage",
    "categorize_error",
    "filter_release_feeds",
    "is_release_feed",
    "plan_reconciliation",
]
