"""Caller enrichment hook for structured log records."""

import logging
import os
from enum import Enum
from typing import Any, Mapping, MutableMapping, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from structlog.types import EventDict, WrappedLogger

from . import stack
from .stack import DEFAULT_STACK_SEARCH_OFFSET, StackResolver

APP_VERSION_ENV = "APP_VERSION"
DEFAULT_PATH_SEGMENTS_LIMIT = 3

# Frames from these modules never count as the caller. Async log methods run
# the processor chain on an executor thread whose stack holds only these.
OWNED_MODULES = (
    __name__,
    stack.__name__,
    "structlog",
    "logging",
    "asyncio",
    "concurrent.futures",
    "threading",
)


class HookConfigError(ValueError):
    """Raised when hook options cannot be applied."""


class Level(str, Enum):
    """Severities a hook can be registered for."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_LEVEL_ALIASES = {
    "warn": Level.WARNING,
    "fatal": Level.CRITICAL,
    "exception": Level.ERROR,
}

DEFAULT_LEVELS = frozenset({Level.DEBUG, Level.TRACE})


def parse_level(name: str | Level) -> Level | None:
    """Map a level or method name to a ``Level``, or ``None`` if unknown."""
    if isinstance(name, Level):
        return name
    key = str(name).lower()
    if key in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[key]
    try:
        return Level(key)
    except ValueError:
        return None


@runtime_checkable
class RootLogger(Protocol):
    """Logger used by the hook to report its own problems."""

    def warning(self, msg: str, *args: Any) -> Any: ...

    def error(self, msg: str, *args: Any) -> Any: ...

    def debug(self, msg: str, *args: Any) -> Any: ...

    def info(self, msg: str, *args: Any) -> Any: ...


class HookOptions(BaseModel):
    """Options for the debug hook.

    Attributes:
        app_version: Version of the running app; read from ``APP_VERSION``
            when left empty
        levels: Levels the hook fires for; debug and trace when left empty
        path_segments_limit: Number of trailing source path segments to keep.
            Untrimmed: /home/user/src/acme/app/worker.py
            Trimmed (3): acme/app/worker.py
            Zero or a negative value disables trimming.
        stack_offset: Extra wrapper frames to skip, for loggers wrapped into
            greater stack depth
        additional_ignores: Module name prefixes treated as logging machinery
    """

    model_config = ConfigDict(frozen=True)

    app_version: str | None = None
    levels: frozenset[Level] | None = None
    path_segments_limit: int | None = None
    stack_offset: int = 0
    additional_ignores: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("levels", mode="before")
    @classmethod
    def _parse_levels(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (str, Level)):
            value = [value]
        levels = set()
        for item in value:
            level = parse_level(item)
            if level is None:
                raise ValueError(f"unknown log level: {item!r}")
            levels.add(level)
        return frozenset(levels)


def check_hook_options(
    options: HookOptions | None, logger: RootLogger | None = None
) -> HookOptions:
    """Fill in defaults for unset options.

    Args:
        options: Options supplied by the caller, or None
        logger: Logger for reporting adjusted values

    Returns:
        A new options instance with every default resolved
    """
    if options is None:
        options = HookOptions()

    updates: dict[str, Any] = {}
    if not options.app_version:
        updates["app_version"] = os.environ.get(APP_VERSION_ENV, "")
    if not options.levels:
        updates["levels"] = DEFAULT_LEVELS
    if options.path_segments_limit is None:
        updates["path_segments_limit"] = DEFAULT_PATH_SEGMENTS_LIMIT
    if options.stack_offset < 0:
        if logger is not None:
            logger.warning(
                "debug hook: negative stack offset %d ignored", options.stack_offset
            )
        updates["stack_offset"] = 0

    return options.model_copy(update=updates)


def limit_path(path: str, n: int) -> str:
    """Keep at most the last ``n`` segments of a file path."""
    if n <= 0:
        return path

    parts = path.split(os.sep)
    if len(parts) <= n:
        return path
    return os.sep.join(parts[-n:])


def short_function_name(function: str) -> str:
    """Strip module path and qualifiers from a function identifier."""
    return function.rsplit("/", 1)[-1].rsplit(".", 1)[-1]


class DebugHook:
    """Adds ``fn``, ``src`` and ``ver`` fields to log records.

    Usable directly as a structlog processor. For the standard library
    ``logging`` module, wrap it in :class:`DebugHookFilter`.
    """

    def __init__(self, options: HookOptions | None, logger: RootLogger) -> None:
        options = check_hook_options(options, logger)
        self.options = options
        self.logger = logger
        self._levels = frozenset(options.levels or ())
        self._stack = StackResolver(
            DEFAULT_STACK_SEARCH_OFFSET,
            options.stack_offset,
            OWNED_MODULES + options.additional_ignores,
        )

    def levels(self) -> frozenset[Level]:
        return self._levels

    def enabled_for(self, name: str | Level) -> bool:
        level = parse_level(name)
        return level is not None and level in self._levels

    def fire(self, event_dict: MutableMapping[str, Any]) -> None:
        """Write caller fields into the record's field mapping."""
        caller = self._stack.get_caller()

        if caller.function:
            event_dict["fn"] = short_function_name(caller.function)

        limit = self.options.path_segments_limit or 0
        event_dict["src"] = f"{limit_path(caller.file, limit)}:{caller.line}"

        if self.options.app_version:
            event_dict["ver"] = self.options.app_version

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        if self.enabled_for(method_name):
            self.fire(event_dict)
        return event_dict


class DebugHookFilter(logging.Filter):
    """Logging filter that enriches ``LogRecord`` attributes with the hook.

    The filter never drops a record.
    """

    def __init__(self, hook: DebugHook, name: str = "") -> None:
        super().__init__(name)
        self.hook = hook

    def filter(self, record: logging.LogRecord) -> bool:
        if self.hook.enabled_for(record.levelname):
            self.hook.fire(record.__dict__)
        return True


def create_hook(
    logger: RootLogger | None = None,
    options: HookOptions | Mapping[str, Any] | None = None,
) -> DebugHook:
    """Create a debug hook from the provided options.

    Args:
        logger: Logger for reporting problems during hook setup. Defaults to
            the ``debug_hook`` stdlib logger.
        options: Hook options, or a mapping of option values; unset fields
            take their defaults

    Returns:
        Configured DebugHook instance

    Raises:
        HookConfigError: If the options are invalid
    """
    if logger is None:
        logger = logging.getLogger("debug_hook")

    if options is not None and not isinstance(options, HookOptions):
        try:
            options = HookOptions.model_validate(options)
        except ValidationError as e:
            raise HookConfigError(f"invalid debug hook options: {e}") from e

    hook = DebugHook(options, logger)
    logger.debug(
        "debug hook enabled for levels: %s",
        ", ".join(sorted(level.value for level in hook.levels())),
    )
    return hook
