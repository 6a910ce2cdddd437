"""Unit tests for reconciliation observability."""

from __future__ import annotations

import datetime as dt

import httpx
import pytest

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
from starfeed.reconcile import (
    ErrorCategory,
    ReconcileResult,
    SyncEventLogger,
    SyncEventType,
    SyncPassError,
    SyncStage,
    categorize_error,
)
from tests.helpers.fakes import FakeLogger


class TestCategorizeError:
    """Tests for error categorization."""

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (GitHubAPIError.http_error(502), ErrorCategory.TRANSIENT),
            (GitHubAPIError.network_error("reset"), ErrorCategory.TRANSIENT),
            (GitHubAPIError.http_error(401), ErrorCategory.AUTHENTICATION),
            (GitHubAPIError.http_error(404), ErrorCategory.CLIENT_ERROR),
            (FreshRSSAPIError.http_error(503), ErrorCategory.TRANSIENT),
            (FreshRSSAPIError.http_error(400), ErrorCategory.CLIENT_ERROR),
            (FreshRSSAuthError.missing_token(), ErrorCategory.AUTHENTICATION),
            (
                GitHubResponseShapeError.undecodable("bad"),
                ErrorCategory.SCHEMA_DRIFT,
            ),
            (
                FreshRSSResponseShapeError.undecodable("quickadd", b"<html>"),
                ErrorCategory.SCHEMA_DRIFT,
            ),
            (GitHubConfigError.empty_token(), ErrorCategory.CONFIGURATION),
            (
                ConfigError.missing(["STARFEED_FRESHRSS_URL"]),
                ErrorCategory.CONFIGURATION,
            ),
            (httpx.ConnectError("refused"), ErrorCategory.TRANSIENT),
            (ValueError("boom"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, exc: BaseException, expected: ErrorCategory) -> None:
        """Each collaborator error maps to its alert category."""
        assert categorize_error(exc) == expected

    def test_follows_chained_cause(self) -> None:
        """A SyncPassError is categorized by the error that caused it."""
        cause = FreshRSSAuthError.missing_token()
        try:
            raise SyncPassError(SyncStage.AUTHENTICATE, str(cause)) from cause
        except SyncPassError as exc:
            assert categorize_error(exc) == ErrorCategory.AUTHENTICATION


class TestSyncEventLogger:
    """Tests for the structured event lines."""

    @pytest.fixture
    def fake_logger(self, monkeypatch: pytest.MonkeyPatch) -> FakeLogger:
        """Swap the module logger for a recording fake."""
        fake = FakeLogger()
        monkeypatch.setattr("starfeed.reconcile.observability.logger", fake)
        return fake

    def test_pass_completed_reports_counters(self, fake_logger: FakeLogger) -> None:
        """Completion lines carry every counter."""
        result = ReconcileResult(added=2, skipped_empty=1, removed=3, unchanged=4)

        SyncEventLogger().log_pass_completed(
            result, dt.timedelta(seconds=1.5), starred=7, subscriptions=9
        )

        [message] = fake_logger.messages("INFO")
        assert message.startswith(f"[{SyncEventType.PASS_COMPLETED}]")
        assert "duration_seconds=1.500" in message
        assert "added=2 skipped_empty=1 removed=3 unchanged=4" in message
        assert "failed=0" in message

    def test_pass_failed_attaches_exception(self, fake_logger: FakeLogger) -> None:
        """Fatal pass failures log at ERROR with exc_info."""
        error = SyncPassError(SyncStage.LIST_STARRED, "GitHub returned HTTP 500")

        SyncEventLogger().log_pass_failed(
            SyncStage.LIST_STARRED, error, dt.timedelta(seconds=0)
        )

        [(level, message, exc_info, _)] = fake_logger.calls
        assert level == "ERROR"
        assert "stage=list_starred" in message
        assert exc_info is error

    def test_feed_skipped_is_a_warning(self, fake_logger: FakeLogger) -> None:
        """Empty feeds are reported as warnings, not errors."""
        SyncEventLogger().log_feed_skipped("https://github.com/o/r/releases.atom")

        assert fake_logger.messages("WARNING") == [
            "[sync.feed.skipped] feed_url=https://github.com/o/r/releases.atom "
            "reason=no_entries"
        ]
