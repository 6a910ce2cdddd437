"""starfeed runtime: one reconciliation pass, the daemon loop and the CLI.

Configuration is driven by ``STARFEED_*`` environment variables (see
:mod:`starfeed.config`). The service runs a pass immediately and then once per
``STARFEED_SYNC_INTERVAL`` seconds until SIGINT or SIGTERM arrives; with
``STARFEED_SINGLE_RUN_MODE=true`` or ``--once`` it exits after the first pass.

Run the service directly with ``python -m starfeed.runtime``.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import datetime as dt
import signal
import time
import typing as typ

from starfeed.atom import AtomFeedProber
from starfeed.config import ConfigError, StarfeedConfig
from starfeed.freshrss import FreshRSSClient, FreshRSSConfig
from starfeed.github import GitHubStarredClient, GitHubStarredConfig
from starfeed.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from starfeed.reconcile import (
    DEFAULT_MAX_CONCURRENCY,
    Reconciler,
    SyncEventLogger,
    SyncPassError,
    SyncStage,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from starfeed.reconcile import (
        FeedProber,
        ReconcileResult,
        StarredRepoSource,
        SubscriptionStore,
    )

__all__ = [
    "Collaborators",
    "main",
    "open_collaborators",
    "run_service",
    "run_sync_pass",
]

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Collaborators:
    """The three collaborators a pass needs."""

    source: StarredRepoSource
    store: SubscriptionStore
    prober: FeedProber


if typ.TYPE_CHECKING:
    CollaboratorFactory: typ.TypeAlias = cabc.Callable[
        [StarfeedConfig], contextlib.AbstractAsyncContextManager[Collaborators]
    ]

_T = typ.TypeVar("_T")


@contextlib.asynccontextmanager
async def open_collaborators(
    config: StarfeedConfig,
) -> typ.AsyncIterator[Collaborators]:
    """Build the GitHub, FreshRSS and Atom clients and close them on exit."""
    source = GitHubStarredClient(
        GitHubStarredConfig(token=config.github_token, timeout_s=config.http_timeout_s)
    )
    store = FreshRSSClient(
        FreshRSSConfig(
            base_url=config.freshrss_url,
            user=config.freshrss_user,
            api_token=config.freshrss_token,
            timeout_s=config.http_timeout_s,
        )
    )
    prober = AtomFeedProber(timeout_s=config.http_timeout_s)
    try:
        yield Collaborators(source=source, store=store, prober=prober)
    finally:
        await source.aclose()
        await store.aclose()
        await prober.aclose()


async def _fatal_stage(stage: SyncStage, awaitable: cabc.Awaitable[_T]) -> _T:
    """Await a stage whose failure aborts the pass."""
    try:
        return await awaitable
    except Exception as exc:
        raise SyncPassError(stage, str(exc)) from exc


def _elapsed(started: float) -> dt.timedelta:
    return dt.timedelta(seconds=time.monotonic() - started)


async def run_sync_pass(
    collaborators: Collaborators,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    event_logger: SyncEventLogger | None = None,
) -> ReconcileResult:
    """Run one full reconciliation pass.

    Authenticates with the store, lists existing subscriptions and starred
    repositories, drops foreign subscriptions and reconciles the rest.

    Raises
    ------
    SyncPassError
        If authentication or either enumeration fails. Nothing has been
        changed in the store when this is raised.

    """
    events = event_logger or SyncEventLogger()
    started = time.monotonic()
    events.log_pass_started()

    try:
        await _fatal_stage(SyncStage.AUTHENTICATE, collaborators.store.authenticate())
        subscriptions = await _fatal_stage(
            SyncStage.LIST_SUBSCRIPTIONS, collaborators.store.list_subscriptions()
        )
        log_info(
            logger,
            "Queried %d feeds in FreshRSS, time: %s",
            len(subscriptions),
            _elapsed(started),
        )
        starred = await _fatal_stage(
            SyncStage.LIST_STARRED, collaborators.source.list_starred_repos()
        )
        log_info(
            logger,
            "Queried %d starred repos in GitHub, time: %s",
            len(starred),
            _elapsed(started),
        )
    except SyncPassError as exc:
        events.log_pass_failed(exc.stage, exc, _elapsed(started))
        raise

    reconciler = Reconciler(
        collaborators.store,
        collaborators.prober,
        max_concurrency=max_concurrency,
        event_logger=events,
    )
    result = await reconciler.reconcile(starred, subscriptions)

    events.log_pass_completed(
        result,
        _elapsed(started),
        starred=len(starred),
        subscriptions=len(subscriptions),
    )
    return result


async def _run_pass_until_stopped(
    collaborators: Collaborators,
    config: StarfeedConfig,
    stop_event: asyncio.Event,
) -> bool:
    """Run a pass, cancelling it if ``stop_event`` fires first.

    Returns ``True`` when the pass ran to completion.
    """
    pass_task = asyncio.create_task(
        run_sync_pass(collaborators, max_concurrency=config.max_concurrency)
    )
    stop_task = asyncio.create_task(stop_event.wait())
    try:
        done, _ = await asyncio.wait(
            {pass_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        pass_task.cancel()
        raise
    finally:
        stop_task.cancel()

    if pass_task not in done:
        pass_task.cancel()
        await asyncio.gather(pass_task, return_exceptions=True)
        log_warning(logger, "Reconciliation pass cancelled by shutdown")
        return False

    try:
        pass_task.result()
    except SyncPassError:
        # Already logged by the pass; the next tick retries
        return False
    return True


async def _wait_for_stop(stop_event: asyncio.Event, timeout_s: float) -> bool:
    """Sleep up to ``timeout_s``; return ``True`` if stopped meanwhile."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout_s)
    except TimeoutError:
        return False
    return True


async def run_service(
    config: StarfeedConfig,
    stop_event: asyncio.Event,
    *,
    collaborator_factory: CollaboratorFactory = open_collaborators,
) -> bool:
    """Run passes on the configured schedule until stopped.

    Returns
    -------
    bool
        ``False`` only when single-run mode's pass did not complete.

    """
    async with collaborator_factory(config) as collaborators:
        while True:
            completed = await _run_pass_until_stopped(
                collaborators, config, stop_event
            )
            if config.single_run_mode:
                log_info(logger, "Running in single run mode, exiting...")
                return completed
            if stop_event.is_set():
                break
            log_info(logger, "Sleeping for %d seconds...", config.sync_interval_s)
            if await _wait_for_stop(stop_event, config.sync_interval_s):
                break

    log_info(logger, "Exiting...")
    return True


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _request_stop() -> None:
        log_warning(logger, "Received interrupt signal, shutting down...")
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, _request_stop)


async def _serve(config: StarfeedConfig) -> bool:
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)
    return await run_service(config, stop_event)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="starfeed",
        description="Subscribe FreshRSS to the release feeds of your GitHub stars.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reconciliation pass and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override STARFEED_LOG_LEVEL / STARFEED_DEBUG_MODE",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Start starfeed.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration errors or when a
        single-run pass fails fatally.

    """
    args = _build_parser().parse_args(argv)

    try:
        config = StarfeedConfig.from_env()
    except ConfigError as exc:
        configure_logging("INFO")
        log_error(logger, "Failed to load configuration: %s", exc)
        return 1

    if args.once:
        config = dataclasses.replace(config, single_run_mode=True)

    requested_level = args.log_level or config.effective_log_level
    normalized_level, invalid_level = configure_logging(requested_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            requested_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting starfeed (log_level=%s, interval=%ds, max_concurrency=%d)",
        normalized_level,
        config.sync_interval_s,
        config.max_concurrency,
    )
    return 0 if asyncio.run(_serve(config)) else 1


if __name__ == "__main__":
    raise SystemExit(main())
