"""Plans and results for reconciliation passes."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from starfeed.github.models import Repo


class ActionKind(enum.StrEnum):
    """Kinds of change the reconciler applies to the subscription store."""

    ADD = "add"
    REMOVE = "remove"


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcilePlan:
    """The diff between starred repositories and existing subscriptions.

    ``to_add`` and ``to_remove`` never share a feed URL, so their actions can
    run concurrently in any order.
    """

    to_add: dict[str, Repo]
    to_remove: tuple[str, ...]
    unchanged: int = 0
    foreign: int = 0

    @property
    def is_empty(self) -> bool:
        """Return whether the plan issues no actions."""
        return not self.to_add and not self.to_remove


@dataclasses.dataclass(frozen=True, slots=True)
class ActionFailure:
    """A single add or remove that raised."""

    feed_url: str
    action: ActionKind
    error: Exception


@dataclasses.dataclass(slots=True)
class ReconcileResult:
    """Summary of one reconciliation pass.

    A pass always runs to completion; individual failures are collected here
    rather than raised.
    """

    added: int = 0
    skipped_empty: int = 0
    removed: int = 0
    unchanged: int = 0
    foreign_ignored: int = 0
    failures: list[ActionFailure] = dataclasses.field(default_factory=list)

    @property
    def failed(self) -> int:
        """Return the number of failed actions."""
        return len(self.failures)

    @property
    def succeeded(self) -> bool:
        """Return whether every attempted action succeeded."""
        return not self.failures
