"""femtologging helpers shared by every starfeed module.

Messages are formatted eagerly with percent-style templates and handed to
femtologging as plain strings, so log output looks the same whether it comes
from the reconciler, the HTTP clients or the runtime loop.

Example:
>>> from starfeed.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Queried %d starred repos", 12)

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger


class LogLevel(enum.StrEnum):
    """Levels accepted by ``STARFEED_LOG_LEVEL`` and ``--log-level``."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[LogLevel, bool]:
    """Resolve ``level`` case-insensitively to a :class:`LogLevel`.

    Blank or unknown input resolves to ``INFO``; the flag is ``True`` when
    that fallback was taken.
    """
    candidate = (level or "").strip().upper()
    try:
        return (LogLevel(candidate), False)
    except ValueError:
        return (LogLevel.INFO, True)


def configure_logging(level: str) -> tuple[LogLevel, bool]:
    """Install the femtologging root handler at ``level``.

    Returns the pair from :func:`normalize_log_level` so the caller can warn
    about an unusable level once a handler exists to receive the warning.
    """
    resolved, invalid = normalize_log_level(level)
    basicConfig(level=resolved.value)
    return (resolved, invalid)


def format_log_message(template: str, *args: object) -> str:
    """Interpolate ``args`` into ``template`` using percent formatting."""
    return template % args


class _SupportsLog(typ.Protocol):
    """Anything exposing femtologging's ``log`` signature."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: str,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    logger.log(
        level,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a DEBUG message with percent-style formatting."""
    _emit(logger, "DEBUG", template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message with percent-style formatting."""
    _emit(logger, "INFO", template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message with percent-style formatting."""
    _emit(logger, "WARNING", template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception attached to the record, if any.

    """
    _emit(logger, "ERROR", template, args, exc_info)


__all__ = [
    "LogLevel",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
