"""Bridge between report scripts and the gnuplot plotting engine."""

from gnuplot_bridge.commands import PlotSession, open_session
from gnuplot_bridge.errors import ArgumentError, BridgeError, ConsistencyError, ResourceError

__all__ = [
    "PlotSession",
    "open_session",
    "BridgeError",
    "ArgumentError",
    "ConsistencyError",
    "ResourceError",
]
