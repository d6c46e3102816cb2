"""Debug output that can be redirected to a handler of the caller's choice."""

import sys
from dataclasses import dataclass
from typing import Callable

DebugHandler = Callable[[str], None]


def _default_handler(message: str) -> None:
    print(f"DEBUG: {message}", file=sys.stderr)


@dataclass
class _DebugState:
    handler: DebugHandler = _default_handler


_state = _DebugState()


def debug_str(message: str) -> None:
    """Send a message to the current debug handler."""
    _state.handler(message)


def debug(fmt: str, *args, **kwargs) -> None:
    """Format a message with ``str.format`` and emit it (skipped under -O)."""
    if __debug__:
        debug_str(fmt.format(*args, **kwargs))


def set_debug_handler(handler: DebugHandler) -> None:
    """Route debug messages to ``handler``."""
    if not callable(handler):
        raise TypeError("debug handler must be callable")
    _state.handler = handler


def reset_debug_handler() -> None:
    """Route debug messages back to standard error."""
    _state.handler = _default_handler