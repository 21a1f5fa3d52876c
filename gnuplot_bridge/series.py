"""
Validation and staging of series data passed in from plot scripts.

Script values arrive loosely typed: keys are a flat array, values are
either a flat array (one series) or an array of equal-length rows (one
row per key, one column per series). Everything is resolved into a
SeriesTable up front, so nothing is written and no command is sent for
malformed input.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Real
from typing import TextIO

import numpy as np

from gnuplot_bridge.errors import ArgumentError, ConsistencyError

DEFAULT_STYLE = "lines"


def is_array(value) -> bool:
    """True for script arrays: lists, tuples and numpy arrays (not strings)."""
    if isinstance(value, np.ndarray):
        return value.ndim >= 1
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _as_array(value, what: str) -> list:
    if not is_array(value):
        raise ArgumentError(f"{what} must be an array, got {type(value).__name__}")
    return list(value)


def _as_number(value, what: str) -> float:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (Real, np.number)):
        raise ArgumentError(f"{what} must be a number, got {type(value).__name__}")
    return float(value)


def _resolve_row(item, index: int) -> tuple[float, ...]:
    """Resolve one value entry: a scalar becomes a one-column row."""
    if is_array(item):
        return tuple(_as_number(v, f"Value {index + 1}") for v in item)
    return (_as_number(item, f"Value {index + 1}"),)


@dataclass
class SeriesTable:
    """Keys aligned with value rows, one column per series.

    Attributes:
        keys: Numeric x values, or string labels for histograms.
        rows: One tuple of series values per key.
        titles: Series titles, possibly fewer than nseries.
    """

    keys: list
    rows: list[tuple[float, ...]]
    titles: list[str | None] = field(default_factory=list)

    def __post_init__(self):
        if len(self.rows) != len(self.keys):
            raise ConsistencyError(
                f"Number of keys and values doesn't match ({len(self.rows)} != {len(self.keys)})"
            )
        widths = {len(row) for row in self.rows}
        if len(widths) > 1:
            raise ConsistencyError(
                f"Inconsistent number of series (rows have {', '.join(str(w) for w in sorted(widths))} values)"
            )

    @property
    def nseries(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def write(self, out: TextIO, quote_keys: bool = False) -> None:
        """Write one "key v1 v2 ... vN" line per key."""
        for key, row in zip(self.keys, self.rows):
            first = f'"{key}"' if quote_keys else format_value(key)
            out.write(" ".join([first, *(format_value(v) for v in row)]) + "\n")


def format_value(value) -> str:
    if isinstance(value, str):
        return value
    return f"{float(value):.15g}"


def read_titles(titles) -> list[str | None]:
    """Titles as strings; a None entry leaves its series untitled."""
    if titles is None:
        return []
    return [None if t is None else str(t) for t in _as_array(titles, "Titles")]


def read_series(keys, values, titles=None) -> SeriesTable:
    """Build a table from numeric keys and flat or per-key row values."""
    keys = [_as_number(k, f"Key {i + 1}") for i, k in enumerate(_as_array(keys, "Keys"))]
    values = _as_array(values, "Values")
    if len(values) != len(keys):
        raise ConsistencyError(
            f"Number of keys and values doesn't match ({len(values)} != {len(keys)})"
        )
    rows = [_resolve_row(item, i) for i, item in enumerate(values)]
    return SeriesTable(keys=keys, rows=rows, titles=read_titles(titles))


def read_histogram(labels, values, titles=None) -> SeriesTable:
    """Like read_series(), but keys are category labels."""
    labels = [str(label) for label in _as_array(labels, "Labels")]
    values = _as_array(values, "Values")
    if len(values) != len(labels):
        raise ConsistencyError(
            f"Number of keys and values doesn't match ({len(values)} != {len(labels)})"
        )
    rows = [_resolve_row(item, i) for i, item in enumerate(values)]
    return SeriesTable(keys=labels, rows=rows, titles=read_titles(titles))


def read_multi_series(keys, values) -> list[SeriesTable]:
    """Build one single-column table per series, each with its own keys."""
    key_sets = _as_array(keys, "Keys")
    value_sets = _as_array(values, "Values")
    if len(value_sets) != len(key_sets):
        raise ConsistencyError(
            f"Number of key series and value series doesn't match ({len(value_sets)} != {len(key_sets)})"
        )

    tables = []
    for i, (series_keys, series_values) in enumerate(zip(key_sets, value_sets)):
        series_keys = _as_array(series_keys, f"Keys of series {i + 1}")
        series_values = _as_array(series_values, f"Values of series {i + 1}")
        if len(series_values) != len(series_keys):
            raise ConsistencyError(
                f"Number of keys and values doesn't match in series {i + 1} "
                f"({len(series_values)} != {len(series_keys)})"
            )
        tables.append(SeriesTable(
            keys=[_as_number(k, f"Key {j + 1} of series {i + 1}") for j, k in enumerate(series_keys)],
            rows=[(_as_number(v, f"Value {j + 1} of series {i + 1}"),) for j, v in enumerate(series_values)],
        ))
    return tables


def resolve_options(arg, default_style: str | None = DEFAULT_STYLE) -> dict[str, str]:
    """Turn the optional 4th plot argument into an options dict.

    A string sets the "style" option. A mapping replaces the defaults
    entirely, so a mapping without "style" plots without a style clause.
    """
    options: dict[str, str] = {}
    if default_style:
        options["style"] = default_style
    if arg is None:
        return options
    if isinstance(arg, str):
        options["style"] = arg
        return options
    if isinstance(arg, Mapping):
        return {str(k): str(v) for k, v in arg.items()}
    raise ArgumentError(f"Style must be a string or an options table, got {type(arg).__name__}")
