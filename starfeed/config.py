"""Environment-driven configuration for the starfeed service."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import os

# Defaults mirror the documented STARFEED_* behaviour
_DEFAULT_HTTP_TIMEOUT_S = 10.0
_DEFAULT_SYNC_INTERVAL_S = 24 * 60 * 60
_DEFAULT_MAX_CONCURRENCY = 8
_DEFAULT_LOG_LEVEL = "INFO"

GITHUB_TOKEN_ENV = "STARFEED_GITHUB_API_TOKEN"
FRESHRSS_URL_ENV = "STARFEED_FRESHRSS_URL"
FRESHRSS_USER_ENV = "STARFEED_FRESHRSS_USER"
FRESHRSS_TOKEN_ENV = "STARFEED_FRESHRSS_API_TOKEN"  # noqa: S105 - env var name
DEBUG_MODE_ENV = "STARFEED_DEBUG_MODE"
LOG_LEVEL_ENV = "STARFEED_LOG_LEVEL"
SINGLE_RUN_MODE_ENV = "STARFEED_SINGLE_RUN_MODE"
HTTP_TIMEOUT_ENV = "STARFEED_HTTP_TIMEOUT"
SYNC_INTERVAL_ENV = "STARFEED_SYNC_INTERVAL"
MAX_CONCURRENCY_ENV = "STARFEED_MAX_CONCURRENCY"

_REQUIRED_VARS = (
    GITHUB_TOKEN_ENV,
    FRESHRSS_URL_ENV,
    FRESHRSS_USER_ENV,
    FRESHRSS_TOKEN_ENV,
)


class ConfigError(RuntimeError):
    """Raised when the environment does not describe a usable configuration."""

    @classmethod
    def missing(cls, names: cabc.Sequence[str]) -> ConfigError:
        """Return an error listing required variables that are unset."""
        return cls(f"Missing required environment variables: {', '.join(names)}")

    @classmethod
    def invalid_positive_int(cls, name: str, raw: str) -> ConfigError:
        """Return an error for a value that must be a positive integer."""
        return cls(f"{name} must be a positive integer, got {raw!r}")


def _flag(env: cabc.Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"


def _http_timeout(env: cabc.Mapping[str, str]) -> float:
    """Parse the HTTP timeout; unusable values fall back to the default."""
    raw = env.get(HTTP_TIMEOUT_ENV, "").strip()
    if not raw:
        return _DEFAULT_HTTP_TIMEOUT_S
    try:
        seconds = int(raw)
    except ValueError:
        return _DEFAULT_HTTP_TIMEOUT_S
    return float(seconds) if seconds > 0 else _DEFAULT_HTTP_TIMEOUT_S


def _positive_int(env: cabc.Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_positive_int(name, raw) from exc
    if value <= 0:
        raise ConfigError.invalid_positive_int(name, raw)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class StarfeedConfig:
    """Runtime settings for a starfeed process.

    Attributes
    ----------
    github_token
        Token used for the GitHub REST API. Never logged.
    freshrss_url
        Base URL of the FreshRSS instance, without the ``/api`` suffix.
    freshrss_user
        FreshRSS user that owns the subscriptions.
    freshrss_token
        FreshRSS API password. Never logged.
    debug_mode
        Forces DEBUG logging regardless of ``log_level``.
    log_level
        Requested log level; normalised when logging is configured.
    single_run_mode
        Run one reconciliation pass and exit.
    http_timeout_s
        Per-request timeout shared by every HTTP client.
    sync_interval_s
        Seconds between reconciliation passes in daemon mode.
    max_concurrency
        Upper bound on simultaneous add/remove actions.

    """

    github_token: str
    freshrss_url: str
    freshrss_user: str
    freshrss_token: str
    debug_mode: bool = False
    log_level: str = _DEFAULT_LOG_LEVEL
    single_run_mode: bool = False
    http_timeout_s: float = _DEFAULT_HTTP_TIMEOUT_S
    sync_interval_s: int = _DEFAULT_SYNC_INTERVAL_S
    max_concurrency: int = _DEFAULT_MAX_CONCURRENCY

    @property
    def effective_log_level(self) -> str:
        """Return the level logging should be configured with."""
        return "DEBUG" if self.debug_mode else self.log_level

    @classmethod
    def from_env(cls, env: cabc.Mapping[str, str] | None = None) -> StarfeedConfig:
        """Build configuration from ``STARFEED_*`` environment variables.

        Parameters
        ----------
        env
            Mapping to read instead of :data:`os.environ`, mainly for tests.

        Raises
        ------
        ConfigError
            If a required variable is unset or blank, or if the sync interval
            or concurrency bound is not a positive integer.

        """
        source = os.environ if env is None else env
        missing = [name for name in _REQUIRED_VARS if not source.get(name, "").strip()]
        if missing:
            raise ConfigError.missing(missing)

        return cls(
            github_token=source[GITHUB_TOKEN_ENV].strip(),
            freshrss_url=source[FRESHRSS_URL_ENV].strip().rstrip("/"),
            freshrss_user=source[FRESHRSS_USER_ENV].strip(),
            freshrss_token=source[FRESHRSS_TOKEN_ENV].strip(),
            debug_mode=_flag(source, DEBUG_MODE_ENV),
            log_level=source.get(LOG_LEVEL_ENV, "").strip() or _DEFAULT_LOG_LEVEL,
            single_run_mode=_flag(source, SINGLE_RUN_MODE_ENV),
            http_timeout_s=_http_timeout(source),
            sync_interval_s=_positive_int(
                source, SYNC_INTERVAL_ENV, _DEFAULT_SYNC_INTERVAL_S
            ),
            max_concurrency=_positive_int(
                source, MAX_CONCURRENCY_ENV, _DEFAULT_MAX_CONCURRENCY
            ),
        )
