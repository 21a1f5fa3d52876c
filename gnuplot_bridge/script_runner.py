"""
Runs plot scripts against a PlotSession.

A plot script is a JSON array of calls, the same positional calling
convention a report script uses:

    [
        {"op": "set_output", "args": ["loc.svg", 800, 400]},
        {"op": "set_title", "args": ["Lines of code"]},
        {"op": "plot_series", "args": [[1, 2, 3], [[10, 4], [12, 5], [15, 5]],
                                       ["src", "tests"], {"style": "linespoints"}]}
    ]

Validation mirrors PlotSession.call(): every call is checked against the
method registry before anything is sent to gnuplot.
"""

import json
from pathlib import Path

from gnuplot_bridge.errors import ArgumentError
from gnuplot_bridge.logging import get_logger
from gnuplot_bridge.registry import validate_args


def load_plot_script(path) -> list[dict]:
    """Read a plot script and check its overall shape.

    Raises:
        ArgumentError: If the file is unreadable, not JSON, or not a list
            of ``{"op": str, "args": list}`` objects.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            calls = json.load(f)
    except OSError as e:
        raise ArgumentError(f"Cannot read plot script: {e}", where=str(path)) from e
    except json.JSONDecodeError as e:
        raise ArgumentError(f"Invalid JSON: {e.msg}", where=f"{path}:{e.lineno}") from e

    if not isinstance(calls, list):
        raise ArgumentError("Plot script must be a JSON array of calls", where=str(path))
    for i, call in enumerate(calls, 1):
        if not isinstance(call, dict) or not isinstance(call.get("op"), str):
            raise ArgumentError("Each call must be an object with an 'op' string", where=f"{path}#{i}")
        if not isinstance(call.get("args", []), list):
            raise ArgumentError("'args' must be an array", where=f"{path}#{i}")
    return calls


def validate_plot_script(calls: list[dict]) -> list[str]:
    """Validate every call against the registry.

    Returns:
        List of violation descriptions prefixed with the call number.
        Empty list means the script is valid.
    """
    violations = []
    for i, call in enumerate(calls, 1):
        for error in validate_args(call["op"], call.get("args", [])):
            violations.append(f"#{i} {call['op']}: {error}")
    return violations


def run_plot_script(calls: list[dict], session, source: str | None = None,
                    stop_on_error: bool = True) -> dict:
    """Run the calls in order through ``session.call()``.

    Args:
        calls: Calls as returned by load_plot_script().
        session: An open PlotSession.
        source: Script name used to locate failing calls.
        stop_on_error: Stop at the first failing call.

    Returns:
        Dict with:
        - status: "success" if every call succeeded, else "error"
        - results: One status dict per executed call
        - message: Summary of failures (errors only)
    """
    logger = get_logger()
    source = source or "<script>"
    results = []
    failures = []

    for i, call in enumerate(calls, 1):
        result = session.call(call["op"], *call.get("args", []))
        if result.get("status") != "success":
            result.setdefault("where", f"{source}#{i}")
            failures.append(f"{result['where']}: {call['op']}: {result.get('message', 'unknown error')}")
        results.append(result)
        if failures and stop_on_error:
            break

    logger.debug(f"Ran {len(results)}/{len(calls)} calls from {source} ({len(failures)} failed)")

    if failures:
        return {"status": "error", "results": results, "message": "\n".join(failures)}
    return {"status": "success", "results": results}
