"""
Plot session: the script-facing side of the gnuplot bridge.

Usage:
    from gnuplot_bridge.commands import open_session
    with open_session() as session:
        session.set_output("commits.png", 800, 600)
        session.set_title("Commits per day")
        session.plot_series([1, 2, 3], [5, 7, 3], ["commits"])

    # Script boundary: positional args in, status dict out
    result = session.call("plot_series", keys, values, titles, "points")
"""

from __future__ import annotations

import os
import uuid
import weakref
from typing import Callable

import config
from gnuplot_bridge import composer, registry
from gnuplot_bridge.connection import GnuplotConnection, detect_standard_terminal
from gnuplot_bridge.errors import ArgumentError, BridgeError, ResourceError
from gnuplot_bridge.logging import (
    get_logger,
    log_command,
    log_error,
    log_session_end,
    log_session_start,
    set_session_id,
    tagged,
)
from gnuplot_bridge.ranges import format_range, padded_range, padded_time_range
from gnuplot_bridge.series import (
    DEFAULT_STYLE,
    SeriesTable,
    read_histogram,
    read_multi_series,
    read_series,
    read_titles,
    resolve_options,
)
from gnuplot_bridge.tempfiles import TempFileStore

# Terminal names accepted in place of gnuplot's own
TERMINAL_ALIASES = {
    "ps": "postscript eps color enhanced",
    "eps": "postscript eps color enhanced",
    "jpg": "jpeg",
}


def terminal_for_file(file: str, standard_terminal: str) -> str:
    """Infer the terminal type from an output file's extension."""
    name = os.path.basename(file)
    pos = name.rfind(".")
    ext = name[pos + 1:].lower() if pos != -1 else ""
    return ext or standard_terminal


def _release(live: dict, tempfiles: TempFileStore) -> int:
    """Close the live connection (if any) and remove all staged files."""
    connection, live["connection"] = live["connection"], None
    if connection is not None:
        try:
            connection.close()
        except OSError as e:
            get_logger().warning(f"Error while closing gnuplot: {e}")
    return tempfiles.remove_all()


class PlotSession:
    """Owns one gnuplot connection and the temp files staged for it.

    Args:
        out: Report output stream gnuplot writes to (None inherits stdout).
        output_redirected: True if the report output is redirected, which
            rules out the interactive display terminal.
        connection_factory: Callable taking ``out`` and returning a
            connection with ``cmd()`` and ``close()``.
        temp_dir: Directory for staged data files (default config.TEMP_DIR).
    """

    def __init__(self, out=None, output_redirected: bool = False,
                 connection_factory: Callable | None = None,
                 temp_dir: str | None = None):
        self.session_id = uuid.uuid4().hex[:8]
        self.out = out
        self.standard_terminal = detect_standard_terminal(output_redirected, out)
        self._connection_factory = connection_factory or GnuplotConnection
        self._live = {"connection": None}
        self._tempfiles = TempFileStore(temp_dir)
        # Sessions dropped without close() still stop gnuplot and remove their files
        self._finalizer = weakref.finalize(self, _release, self._live, self._tempfiles)
        self._stats = {"commands": 0, "plots": 0, "temp_files": 0}
        self._handlers = self._build_handlers()

    def _build_handlers(self) -> dict[str, Callable]:
        return {
            "cmd": self.cmd,
            "set_output": self.set_output,
            "set_title": self.set_title,
            "set_xrange": self.set_xrange,
            "set_xrange_time": self.set_xrange_time,
            "plot_series": self.plot_series,
            "plot_multi_series": self.plot_multi_series,
            "plot_histogram": self.plot_histogram,
            "flush": self.flush,
        }

    # --- Lifecycle ---

    @property
    def _connection(self):
        return self._live["connection"]

    @_connection.setter
    def _connection(self, connection) -> None:
        self._live["connection"] = connection

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def temp_files(self) -> list[str]:
        return self._tempfiles.paths

    def open(self) -> dict:
        """Start the gnuplot connection.

        Raises:
            ResourceError: If gnuplot cannot be started. The session stays
                usable; a later open() or flush() may succeed.
        """
        set_session_id(self.session_id)
        if self._connection is None:
            self._connection = self._connection_factory(self.out)
        log_session_start(self.session_id, self.standard_terminal)
        return {"status": "success", "terminal": self.standard_terminal}

    def flush(self) -> dict:
        """Restart gnuplot, forcing pending plots to finish.

        Once the old process has exited it no longer holds the staged data
        files, so they are removed before the new connection starts.
        """
        removed = self._shutdown()
        get_logger().debug(f"Flushed gnuplot, removed {removed} temp files", extra=tagged("session"))
        self._connection = self._connection_factory(self.out)
        return {"status": "success", "temp_files_removed": removed}

    def close(self) -> None:
        """Stop gnuplot and delete all temp files. Safe to call repeatedly."""
        if self._connection is None and len(self._tempfiles) == 0:
            return
        self._shutdown()
        log_session_end(self._stats)

    def _shutdown(self) -> int:
        removed = _release(self._live, self._tempfiles)
        self._stats["temp_files"] += removed
        return removed

    def __enter__(self) -> "PlotSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Script boundary ---

    def call(self, name: str, *args) -> dict:
        """Validate and run one script operation, returning a status dict.

        Bridge errors never escape: they come back as
        ``{"status": "error", "message": ..., "where": ...}``.
        """
        errors = registry.validate_args(name, args)
        try:
            if errors:
                raise ArgumentError("; ".join(errors))
            result = self._handlers[name](*args)
        except BridgeError as e:
            log_error(f"{name} failed: {e.message}", exc=e, context={"operation": name})
            return e.to_dict()
        return result if result is not None else {"status": "success"}

    # --- Operations ---

    def gcmd(self, command: str) -> None:
        """Send one command to gnuplot and log it."""
        if self._connection is None:
            raise ResourceError("gnuplot is not running (open() or flush() the session first)")
        log_command(command)
        self._connection.cmd(command)
        self._stats["commands"] += 1

    def cmd(self, command: str) -> dict:
        """Forward a raw command verbatim."""
        self.gcmd(command)
        return {"status": "success", "command": command}

    def set_output(self, file: str, width: int | None = None, height: int | None = None,
                   terminal: str | None = None) -> dict:
        """Set the output file and terminal.

        Without a terminal, the file extension picks one (falling back to the
        standard terminal). An empty file resets the output to the terminal's
        default while still setting terminal and size.
        """
        width = config.OUTPUT_WIDTH if width is None else int(width)
        height = config.OUTPUT_HEIGHT if height is None else int(height)
        if not terminal:
            terminal = terminal_for_file(file, self.standard_terminal)
        terminal = TERMINAL_ALIASES.get(terminal, terminal)

        if file:
            self.gcmd(f'set output "{file}"')
        else:
            self.gcmd("set output")
        self.gcmd(f"set terminal {terminal} size {width},{height}")
        return {"status": "success", "file": file, "terminal": terminal,
                "width": width, "height": height}

    def set_title(self, title: str) -> dict:
        self.gcmd(f'set title "{title}"')
        return {"status": "success", "title": title}

    def set_xrange(self, start: float, end: float) -> dict:
        """Set the x and x2 ranges to [start, end] plus 5% on either side."""
        low, high = padded_range(start, end)
        self.gcmd(format_range("x", low, high))
        self.gcmd(format_range("x2", low, high))
        return {"status": "success", "range": [low, high]}

    def set_xrange_time(self, start, end) -> dict:
        """Like set_xrange(), for Unix timestamps; bounds use gnuplot's epoch."""
        low, high = padded_time_range(start, end)
        self.gcmd(format_range("x", low, high))
        self.gcmd(format_range("x2", low, high))
        return {"status": "success", "range": [low, high]}

    def plot_series(self, keys, values, titles=None, style=None) -> dict:
        """Plot one or more series sharing a key column."""
        table = read_series(keys, values, titles)
        options = resolve_options(style, DEFAULT_STYLE)
        file = self._stage(table)
        self._plot(composer.compose_series(file, table.nseries, table.titles, options))
        return {"status": "success", "file": file, "num_series": table.nseries}

    def plot_multi_series(self, keys, values, titles=None, style=None) -> dict:
        """Plot series that each have their own keys, one data file per series."""
        tables = read_multi_series(keys, values)
        titles = read_titles(titles)
        options = resolve_options(style, DEFAULT_STYLE)
        files = [self._stage(table) for table in tables]
        self._plot(composer.compose_multi_series(files, titles, options))
        return {"status": "success", "files": files, "num_series": len(files)}

    def plot_histogram(self, labels, values, titles=None, style=None) -> dict:
        """Plot a histogram; labels become x tic labels."""
        table = read_histogram(labels, values, titles)
        options = resolve_options(style, None)
        file = self._stage(table, quote_keys=True)
        self.gcmd("set style data histogram")
        self._plot(composer.compose_histogram(file, table.nseries, table.titles, options))
        return {"status": "success", "file": file, "num_series": table.nseries}

    # --- Helpers ---

    def _stage(self, table: SeriesTable, quote_keys: bool = False) -> str:
        """Write a table to a new temp file and return its path."""
        temp = self._tempfiles.create()
        try:
            table.write(temp.handle, quote_keys=quote_keys)
        except OSError as e:
            raise ResourceError(f"Unable to write temporary file '{temp.path}': {e}") from e
        finally:
            temp.close()
        return temp.path

    def _plot(self, command: str) -> None:
        get_logger().debug(f"Running plot with command: {command}", extra=tagged("plot"))
        self.gcmd(command)
        self._stats["plots"] += 1


def open_session(out=None, output_redirected: bool = False, **kwargs) -> PlotSession:
    """Create a PlotSession and start its gnuplot connection."""
    session = PlotSession(out=out, output_redirected=output_redirected, **kwargs)
    session.open()
    return session
