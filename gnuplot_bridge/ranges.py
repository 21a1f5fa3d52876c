"""
Axis range helpers: 5% padding and Unix → gnuplot epoch conversion.
"""

from datetime import datetime, timezone

import numpy as np

from gnuplot_bridge.errors import ArgumentError

# Gnuplot time values count seconds from 2000-01-01 00:00 UTC
EPOCH_OFFSET = int(
    (np.datetime64("2000-01-01T00:00:00", "s") - np.datetime64("1970-01-01T00:00:00", "s"))
    .astype(np.int64)
)

PADDING = 0.05


def convert_epoch(t):
    """Convert Unix seconds to gnuplot seconds."""
    return t - EPOCH_OFFSET


def padded_range(start: float, end: float) -> tuple[float, float]:
    """Widen [start, end] by 5% of its length on both sides.

    The low bound is floored and the high bound ceiled to three decimals,
    so the padded range always contains the original one.
    """
    start = float(start)
    end = float(end)
    if not (np.isfinite(start) and np.isfinite(end)):
        raise ArgumentError(f"Range bounds must be finite, got [{start}:{end}]")
    d = end - start
    low = np.floor(1000 * (start - PADDING * d)) / 1000
    high = np.ceil(1000 * (end + PADDING * d)) / 1000
    return float(low), float(high)


def padded_time_range(start, end) -> tuple[int, int]:
    """Padded range for Unix timestamps, shifted to the gnuplot epoch.

    Accepts seconds as numbers, or datetime / numpy.datetime64 values.
    """
    low, high = padded_range(to_unix_seconds(start), to_unix_seconds(end))
    return int(convert_epoch(low)), int(convert_epoch(high))


def to_unix_seconds(value) -> float:
    """Return ``value`` as Unix seconds. Naive datetimes are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, np.datetime64):
        return float((value - np.datetime64("1970-01-01T00:00:00", "ns")) / np.timedelta64(1, "s"))
    return float(value)


def format_range(axis: str, low, high) -> str:
    """Build a ``set <axis>range`` command. Floats print with six decimals."""
    if isinstance(low, float) or isinstance(high, float):
        return f"set {axis}range [{low:f}:{high:f}]"
    return f"set {axis}range [{low}:{high}]"
