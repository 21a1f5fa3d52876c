"""
Builds gnuplot ``plot`` directives from staged data files.

One clause per series: ``"<file>" using <selector> title "<t>"|notitle
[with <style>]``, comma-joined after ``plot``. An options["command"]
value replaces the generated clauses with ``"<file>" <command>``.
"""

from collections.abc import Sequence


def clause(file: str, selector: str, title: str | None, style: str | None) -> str:
    parts = [f'"{file}" using {selector}']
    parts.append(f'title "{title}"' if title is not None else "notitle")
    if style is not None:
        parts.append(f"with {style}")
    return " ".join(parts)


def _title(titles: Sequence[str | None], i: int) -> str | None:
    return titles[i] if i < len(titles) else None


def plot_directive(clauses: Sequence[str]) -> str:
    return "plot " + ", ".join(clauses)


def override_directive(file: str, command: str) -> str:
    return f'plot "{file}" {command}'


def compose_series(file: str, nseries: int, titles: Sequence[str | None], options: dict) -> str:
    """Plot column i+2 against the key column for each series."""
    if "command" in options:
        return override_directive(file, options["command"])
    style = options.get("style")
    return plot_directive([
        clause(file, f"1:{i + 2}", _title(titles, i), style)
        for i in range(nseries)
    ])


def compose_multi_series(files: Sequence[str], titles: Sequence[str | None], options: dict) -> str:
    """One clause per file, each file holding a single key/value series."""
    if "command" in options:
        return plot_directive([f'"{f}" {options["command"]}' for f in files])
    style = options.get("style")
    return plot_directive([
        clause(f, "1:2", _title(titles, i), style)
        for i, f in enumerate(files)
    ])


def compose_histogram(file: str, nseries: int, titles: Sequence[str | None], options: dict) -> str:
    """Plot column i+2 as bars labelled by the key column."""
    if "command" in options:
        return override_directive(file, options["command"])
    style = options.get("style")
    return plot_directive([
        clause(file, f"{i + 2}:xtic(1)", _title(titles, i), style)
        for i in range(nseries)
    ])
