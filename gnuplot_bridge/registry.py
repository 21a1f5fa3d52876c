"""
Method registry for script-facing plot operations.

Describes every operation a plot script may call as structured data.
PlotSession.call() validates positional arguments against it before
dispatching, and main.py renders it for --list-methods.

Adding a new operation:
    1. Add an entry to METHODS below
    2. Implement the handler on PlotSession in commands.py
    3. Register it in PlotSession._build_handlers()
"""

from collections.abc import Mapping
from datetime import datetime
from numbers import Integral, Real

import numpy as np

from gnuplot_bridge.series import is_array

_SERIES_PARAMETERS = [
    {"name": "titles", "type": "array", "required": False, "default": None,
     "description": "Series titles; series without one are plotted with notitle"},
    {"name": "style", "type": "style", "required": False, "default": "lines",
     "description": "Style string (e.g. 'points') or options table {style=..., command=...}"},
]

METHODS = [
    {
        "name": "cmd",
        "description": "Send a raw gnuplot command verbatim.",
        "parameters": [
            {"name": "command", "type": "string", "required": True,
             "description": "gnuplot command line"},
        ],
    },
    {
        "name": "set_output",
        "description": "Set the output file and terminal. The terminal is inferred from the "
                       "file extension when omitted; an empty file resets the output.",
        "parameters": [
            {"name": "file", "type": "string", "required": True,
             "description": "Output file path, or '' for the terminal's default output"},
            {"name": "width", "type": "integer", "required": False, "default": 640,
             "description": "Width in pixels"},
            {"name": "height", "type": "integer", "required": False, "default": 480,
             "description": "Height in pixels"},
            {"name": "terminal", "type": "string", "required": False, "default": None,
             "description": "gnuplot terminal type (e.g. 'png', 'svg', 'eps')"},
        ],
    },
    {
        "name": "set_title",
        "description": "Set the plot title.",
        "parameters": [
            {"name": "title", "type": "string", "required": True,
             "description": "Title text"},
        ],
    },
    {
        "name": "set_xrange",
        "description": "Set the x and x2 axis range, padded by 5% on both sides.",
        "parameters": [
            {"name": "start", "type": "number", "required": True,
             "description": "Lowest x value"},
            {"name": "end", "type": "number", "required": True,
             "description": "Highest x value"},
        ],
    },
    {
        "name": "set_xrange_time",
        "description": "Set the x and x2 axis range from Unix timestamps, padded by 5%.",
        "parameters": [
            {"name": "start", "type": "time", "required": True,
             "description": "Earliest time (Unix seconds)"},
            {"name": "end", "type": "time", "required": True,
             "description": "Latest time (Unix seconds)"},
        ],
    },
    {
        "name": "plot_series",
        "description": "Plot XY series sharing one key column.",
        "parameters": [
            {"name": "keys", "type": "array", "required": True,
             "description": "X values"},
            {"name": "values", "type": "array", "required": True,
             "description": "One value per key, or one row of series values per key"},
            *_SERIES_PARAMETERS,
        ],
    },
    {
        "name": "plot_multi_series",
        "description": "Plot XY series that each have their own keys.",
        "parameters": [
            {"name": "keys", "type": "array", "required": True,
             "description": "One array of X values per series"},
            {"name": "values", "type": "array", "required": True,
             "description": "One array of values per series"},
            *_SERIES_PARAMETERS,
        ],
    },
    {
        "name": "plot_histogram",
        "description": "Plot a histogram with labelled categories.",
        "parameters": [
            {"name": "labels", "type": "array", "required": True,
             "description": "Category labels"},
            {"name": "values", "type": "array", "required": True,
             "description": "One value per label, or one row of series values per label"},
            {**_SERIES_PARAMETERS[0]},
            {**_SERIES_PARAMETERS[1], "default": None},
        ],
    },
    {
        "name": "flush",
        "description": "Restart gnuplot so pending plots are finished and temp files released.",
        "parameters": [],
    },
]

# Build lookup dict for fast access
_METHOD_MAP = {m["name"]: m for m in METHODS}


def _is_integer(value) -> bool:
    return isinstance(value, (Integral, np.integer)) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (Real, np.number)) and not isinstance(value, bool)


def _is_time(value) -> bool:
    return _is_number(value) or isinstance(value, (datetime, np.datetime64))


_TYPE_CHECKS = {
    "string": (lambda v: isinstance(v, str), "a string"),
    "integer": (_is_integer, "an integer"),
    "number": (_is_number, "a number"),
    "time": (_is_time, "a number or a datetime"),
    "array": (is_array, "an array"),
    "style": (lambda v: isinstance(v, (str, Mapping)), "a string or an options table"),
}


def get_method(name: str) -> dict | None:
    """Look up a method by name.

    Args:
        name: Method name (e.g., 'plot_series')

    Returns:
        Method definition dict, or None if not found.
    """
    return _METHOD_MAP.get(name)


def arity(name: str) -> tuple[int, int]:
    """Return (minimum, maximum) positional argument counts for a method."""
    params = _METHOD_MAP[name]["parameters"]
    return sum(1 for p in params if p["required"]), len(params)


def _expected(low: int, high: int) -> str:
    return str(low) if low == high else f"{low}-{high}"


def validate_args(name: str, args) -> list[str]:
    """Validate positional arguments against a method's parameter spec.

    Checks the argument count first, then each argument's type. Optional
    arguments passed as None are treated as omitted.

    Args:
        name: Method name
        args: Positional arguments (list or tuple)

    Returns:
        List of error messages. Empty list means valid.
    """
    method = get_method(name)
    if method is None:
        return [f"Unknown method: {name}"]

    low, high = arity(name)
    if not low <= len(args) <= high:
        return [f"Invalid number of arguments (expected {_expected(low, high)}, got {len(args)})"]

    errors = []
    for i, (param, value) in enumerate(zip(method["parameters"], args)):
        if value is None and not param["required"]:
            continue
        check, expected = _TYPE_CHECKS[param["type"]]
        if not check(value):
            errors.append(
                f"Argument {i + 1} ({param['name']}) must be {expected}, got {type(value).__name__}"
            )
    return errors


def render_method_catalog() -> str:
    """Render the method registry as a markdown catalog.

    Returns:
        Markdown string listing all methods with parameters and descriptions.
    """
    lines = ["## Available Methods", ""]
    for method in METHODS:
        param_parts = []
        for p in method["parameters"]:
            if p["required"]:
                param_parts.append(p["name"])
            else:
                default = p.get("default")
                param_parts.append(f"[{p['name']}={'' if default is None else default}]")
        sig = ", ".join(param_parts)
        lines.append(f"- **{method['name']}**({sig}) -- {method['description']}")
    lines.append("")
    return "\n".join(lines)
