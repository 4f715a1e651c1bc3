"""Call stack inspection for locating the application's logging call site."""

import sys
from dataclasses import dataclass
from types import FrameType
from typing import Iterable

# Frames between the resolver's caller and the logging machinery
# (the hook's own ``fire`` frame).
DEFAULT_STACK_SEARCH_OFFSET = 1

# Upper bound on frames inspected beyond the configured offsets.
MAX_STACK_SEARCH_DEPTH = 32


@dataclass(frozen=True)
class CallerFrame:
    """Caller information resolved for a single log call."""

    function: str = ""
    file: str = ""
    line: int = 0


ZERO_FRAME = CallerFrame()


def _module_name(frame: FrameType) -> str:
    return frame.f_globals.get("__name__") or ""


class StackResolver:
    """Resolve the first application frame above the logging machinery.

    The walk starts at the frame that called :meth:`get_caller`, skips
    ``base_offset`` frames known to belong to the hook, passes over every frame
    whose module belongs to one of ``owned_modules`` and finally skips
    ``extra_offset`` frames of application-level logging wrappers.

    Args:
        base_offset: Frames known to sit between the caller and the logging
            library
        extra_offset: Wrapper frames added by the embedding application
        owned_modules: Module name prefixes treated as logging machinery
    """

    def __init__(
        self, base_offset: int, extra_offset: int, owned_modules: Iterable[str]
    ) -> None:
        self.base_offset = max(base_offset, 0)
        self.extra_offset = max(extra_offset, 0)
        self.owned_modules = tuple(owned_modules)

    def is_owned(self, module_name: str) -> bool:
        """Check whether a module belongs to the logging machinery."""
        return any(
            module_name == prefix or module_name.startswith(prefix + ".")
            for prefix in self.owned_modules
        )

    def get_caller(self) -> CallerFrame:
        """Return the application's call site, or ``ZERO_FRAME`` if not found."""
        try:
            frame: FrameType | None = sys._getframe(1)
        except ValueError:
            return ZERO_FRAME

        try:
            for _ in range(self.base_offset):
                if frame is None:
                    return ZERO_FRAME
                frame = frame.f_back

            budget = MAX_STACK_SEARCH_DEPTH + self.extra_offset
            remaining_wrappers = self.extra_offset
            while frame is not None and budget > 0:
                if not self.is_owned(_module_name(frame)):
                    if remaining_wrappers == 0:
                        code = frame.f_code
                        return CallerFrame(
                            function=f"{_module_name(frame)}.{code.co_qualname}",
                            file=code.co_filename,
                            line=frame.f_lineno or 0,
                        )
                    remaining_wrappers -= 1
                frame = frame.f_back
                budget -= 1

            return ZERO_FRAME
        finally:
            # Break reference cycle: frame -> f_locals -> frame
            del frame
