"""
Debug hook: caller enrichment for structured logs.

Adds the calling function name, a trimmed source location and an optional
application version to every record a structlog processor chain (or a
standard library logging handler) emits at the configured levels.
"""

from .hook import (
    DebugHook,
    DebugHookFilter,
    HookConfigError,
    HookOptions,
    Level,
    RootLogger,
    create_hook,
    limit_path,
)
from .stack import CallerFrame, StackResolver

__version__ = "1.0.0"

__all__ = [
    # Hook
    "create_hook",
    "DebugHook",
    "DebugHookFilter",
    "HookOptions",
    "HookConfigError",
    "Level",
    "RootLogger",
    "limit_path",
    # Stack inspection
    "CallerFrame",
    "StackResolver",
]
