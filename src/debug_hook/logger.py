"""Structured logging setup with the debug hook installed."""

import logging
import os
import sys
import threading
from contextlib import suppress
from datetime import UTC, datetime
from typing import Any, TextIO

import structlog
from structlog.types import EventDict

from .hook import DebugHook, HookOptions, create_hook

LOG_LEVEL_ENV = "LOG_LEVEL"

# Global instances
_LOGGER_INSTANCE = None
_logger_lock = threading.Lock()


def add_timestamp(
    _: structlog.BoundLogger, __: str, event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def resolve_log_level(log_level: str | None = None) -> int:
    """Translate a level name into a stdlib logging level.

    Args:
        log_level: Level name; falls back to ``LOG_LEVEL`` and then INFO

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the name is not a known level
    """
    name = (log_level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def build_processors(hook: DebugHook, *extra: Any) -> list[Any]:
    """Return the processor chain used for every configured logger.

    Processors passed as ``extra`` run after the hook and before rendering.
    """
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        hook,
        *extra,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logger(
    log_level: str | None = None,
    hook_options: HookOptions | None = None,
    stream: TextIO | None = None,
    extra_processors: tuple[Any, ...] = (),
) -> structlog.stdlib.BoundLogger:
    """Configure and return a new logger instance.

    This is a low-level function that creates a new logger configuration.
    For normal usage, prefer setup_logging() which properly handles the global instance.

    Args:
        log_level: Log level (default: ``LOG_LEVEL`` or INFO)
        hook_options: Options for the debug hook
        stream: Stream for rendered records (default: stderr)
        extra_processors: Processors inserted after the debug hook

    Returns:
        A properly configured structlog.stdlib.BoundLogger instance
    """
    level = resolve_log_level(log_level)
    hook = create_hook(logging.getLogger("debug_hook"), hook_options)

    structlog.configure(
        processors=build_processors(hook, *extra_processors),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers
    for existing in root_logger.handlers[:]:
        existing.close()
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logger = structlog.get_logger()
    result: structlog.stdlib.BoundLogger = logger.bind()
    if not isinstance(result, structlog.stdlib.BoundLogger):
        raise TypeError("Expected BoundLogger instance")
    return result


def setup_logging(
    *,
    log_level: str | None = None,
    hook_options: HookOptions | None = None,
    stream: TextIO | None = None,
    extra_processors: tuple[Any, ...] = (),
) -> structlog.stdlib.BoundLogger:
    """Setup structured logging and store the global logger.

    Args:
        log_level: Log level (default: ``LOG_LEVEL`` or INFO)
        hook_options: Options for the debug hook
        stream: Stream for rendered records (default: stderr)
        extra_processors: Processors inserted after the debug hook

    Returns:
        The configured logger instance
    """
    global _LOGGER_INSTANCE

    with suppress(Exception):
        structlog.reset_defaults()

    new_logger = configure_logger(
        log_level=log_level,
        hook_options=hook_options,
        stream=stream,
        extra_processors=extra_processors,
    )

    with _logger_lock:
        _LOGGER_INSTANCE = new_logger
    return new_logger


def get_logger() -> structlog.stdlib.BoundLogger:
    """Get configured logger instance.

    If no logger has been configured yet, configures one with default
    settings.
    """
    global _LOGGER_INSTANCE

    with _logger_lock:
        if _LOGGER_INSTANCE is None:
            _LOGGER_INSTANCE = configure_logger()
        result = _LOGGER_INSTANCE

    if not isinstance(result, structlog.stdlib.BoundLogger):
        raise TypeError("Expected BoundLogger instance")
    return result


def reset_logger() -> None:
    """Reset logger state.

    Closes and removes root handlers, resets structlog configuration and
    clears the global logger instance. Safe to call multiple times.
    """
    global _LOGGER_INSTANCE
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        with suppress(Exception):
            handler.close()
        with suppress(Exception):
            root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)

    with suppress(Exception):
        structlog.reset_defaults()

    with _logger_lock:
        _LOGGER_INSTANCE = None
