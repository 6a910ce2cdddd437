"""Errors raised by a reconciliation pass."""

from __future__ import annotations

import enum


class SyncStage(enum.StrEnum):
    """Pass stages whose failure aborts the whole pass."""

    AUTHENTICATE = "authenticate"
    LIST_SUBSCRIPTIONS = "list_subscriptions"
    LIST_STARRED = "list_starred"


class ReconcileError(Exception):
    """Base class for reconciliation errors."""


class SyncPassError(ReconcileError):
    """Raised when a fatal stage fails and no diff can be computed or applied.

    Attributes
    ----------
    stage
        The stage that failed.

    The underlying collaborator error is chained as ``__cause__``.
    """

    def __init__(self, stage: SyncStage, detail: str) -> None:
        """Initialise with the failed stage and a description of the cause."""
        self.stage = stage
        super().__init__(f"Sync pass failed during {stage}: {detail}")
