"""Structured log events for reconciliation passes.

Every event is a single ``[event.type] key=value ...`` line so pass health
can be followed with a log aggregator: INFO for progress, WARNING for skipped
feeds and ERROR for failures.
"""

from __future__ import annotations

import enum
import typing as typ

import httpx

from starfeed.config import ConfigError
from starfeed.freshrss.errors import (
    FreshRSSAPIError,
    FreshRSSAuthError,
    FreshRSSResponseShapeError,
)
from starfeed.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from starfeed.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from .errors import SyncStage
    from .models import ActionKind, ReconcileResult

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500
_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403


class SyncEventType(enum.StrEnum):
    """Structured log event types for reconciliation."""

    PASS_STARTED = "sync.pass.started"
    PASS_COMPLETED = "sync.pass.completed"
    PASS_FAILED = "sync.pass.failed"
    FEED_ADDED = "sync.feed.added"
    FEED_SKIPPED = "sync.feed.skipped"
    FEED_REMOVED = "sync.feed.removed"
    FEED_FAILED = "sync.feed.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    AUTHENTICATION = "authentication"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (FreshRSSAuthError, ErrorCategory.AUTHENTICATION),
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (FreshRSSResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (ConfigError, ErrorCategory.CONFIGURATION),
    (httpx.TransportError, ErrorCategory.TRANSIENT),
)


def _categorize_status(status_code: int | None) -> ErrorCategory:
    if status_code is None or status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
        # No status means the request never got a response
        return ErrorCategory.TRANSIENT
    if status_code in {_HTTP_UNAUTHORIZED, _HTTP_FORBIDDEN}:
        return ErrorCategory.AUTHENTICATION
    return ErrorCategory.CLIENT_ERROR


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Chained causes are followed so a wrapped collaborator error is classified
    by its origin.
    """
    if isinstance(exc, GitHubAPIError | FreshRSSAPIError):
        return _categorize_status(exc.status_code)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    if exc.__cause__ is not None:
        return categorize_error(exc.__cause__)

    return ErrorCategory.UNKNOWN


class SyncEventLogger:
    """Emit structured reconciliation events through femtologging."""

    def log_pass_started(self) -> None:
        """Log the start of a pass."""
        log_info(logger, "[%s]", SyncEventType.PASS_STARTED)

    def log_pass_completed(
        self,
        result: ReconcileResult,
        duration: dt.timedelta,
        *,
        starred: int,
        subscriptions: int,
    ) -> None:
        """Log pass completion with its counters."""
        log_info(
            logger,
            "[%s] duration_seconds=%.3f starred=%d subscriptions=%d "
            "added=%d skipped_empty=%d removed=%d unchanged=%d "
            "foreign_ignored=%d failed=%d",
            SyncEventType.PASS_COMPLETED,
            duration.total_seconds(),
            starred,
            subscriptions,
            result.added,
            result.skipped_empty,
            result.removed,
            result.unchanged,
            result.foreign_ignored,
            result.failed,
        )

    def log_pass_failed(
        self,
        stage: SyncStage,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a pass aborted by a fatal stage failure."""
        log_error(
            logger,
            "[%s] stage=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            SyncEventType.PASS_FAILED,
            stage,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_feed_added(self, feed_url: str, name: str) -> None:
        """Log a new subscription."""
        log_info(
            logger, "[%s] feed_url=%s name=%s", SyncEventType.FEED_ADDED, feed_url, name
        )

    def log_feed_skipped(self, feed_url: str) -> None:
        """Log a starred repository whose feed has no entries."""
        log_warning(
            logger,
            "[%s] feed_url=%s reason=no_entries",
            SyncEventType.FEED_SKIPPED,
            feed_url,
        )

    def log_feed_removed(self, feed_url: str) -> None:
        """Log removal of a feed that is no longer starred."""
        log_info(logger, "[%s] feed_url=%s", SyncEventType.FEED_REMOVED, feed_url)

    def log_feed_failed(
        self, feed_url: str, action: ActionKind, error: Exception
    ) -> None:
        """Log a failed add or remove; the pass carries on."""
        log_error(
            logger,
            "[%s] feed_url=%s action=%s error_type=%s error_category=%s "
            "error_message=%s",
            SyncEventType.FEED_FAILED,
            feed_url,
            action,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )
