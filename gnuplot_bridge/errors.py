"""
Error types raised by the plotting bridge.

Every bridge-detected failure is a BridgeError carrying a human-readable
message and, where known, an origin location. PlotSession.call() turns
them into status dicts at the script boundary.
"""

import inspect
import os
from typing import Optional


def _caller_location(depth: int = 2) -> Optional[str]:
    """Return ``file:line`` of the frame ``depth`` levels above this one."""
    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            if frame is None:
                return None
            frame = frame.f_back
        if frame is None:
            return None
        return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"
    finally:
        del frame


class BridgeError(Exception):
    """Base class for all errors surfaced to plot scripts.

    Attributes:
        message: Human-readable description.
        where: Origin location (``file:line`` or a script position), or None.
    """

    def __init__(self, message: str, where: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.where = where

    def to_dict(self) -> dict:
        result = {"status": "error", "message": self.message}
        if self.where:
            result["where"] = self.where
        return result


class ArgumentError(BridgeError):
    """Wrong number of arguments, or an argument of the wrong shape/type."""


class ConsistencyError(BridgeError):
    """Arguments disagree with each other (key/value counts, row widths)."""


class ResourceError(BridgeError):
    """A temp file or the gnuplot process could not be used.

    Records the raising ``file:line`` when no location is given.
    """

    def __init__(self, message: str, where: Optional[str] = None):
        super().__init__(message, where or _caller_location())
