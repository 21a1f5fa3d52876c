"""
Gnuplot connection via a subprocess pipe.
Run this file directly to test: python -m gnuplot_bridge.connection
"""
import os
import shutil
import subprocess
import sys
from pathlib import Path

import config
from gnuplot_bridge.errors import ResourceError
from gnuplot_bridge.logging import get_logger


def find_gnuplot() -> str:
    """Locate the gnuplot executable, trying the configured path then PATH."""
    if config.GNUPLOT_PATH:
        configured = Path(config.GNUPLOT_PATH).expanduser()
        if configured.exists():
            return str(configured)
    found = shutil.which("gnuplot")
    if found is None:
        raise ResourceError(
            "gnuplot executable not found. Install gnuplot or set GNUPLOT_PATH."
        )
    return found


def detect_standard_terminal(output_redirected: bool = False, stream=None) -> str:
    """Pick the terminal used when an output file does not name one.

    The interactive display terminal is only used on X11 systems (not macOS)
    when DISPLAY is set, the stream is a terminal and the report output is
    not redirected. Everything else gets the static fallback format.
    """
    if stream is None:
        stream = sys.stdout
    if os.name == "posix" and sys.platform != "darwin":
        isatty = getattr(stream, "isatty", None)
        if os.environ.get("DISPLAY") and isatty is not None and isatty() and not output_redirected:
            return config.DISPLAY_TERMINAL
    return config.FALLBACK_TERMINAL


class GnuplotConnection:
    """One running gnuplot process fed through its standard input.

    Args:
        out: Stream receiving gnuplot's standard output (needs a fileno());
             None inherits the parent's stdout.
        binary: gnuplot executable; located with find_gnuplot() if omitted.
        args: Extra command-line arguments (default config.GNUPLOT_ARGS).
    """

    def __init__(self, out=None, binary: str | None = None, args: list[str] | None = None):
        self.binary = binary or find_gnuplot()
        self.args = list(config.GNUPLOT_ARGS if args is None else args)
        logger = get_logger()
        logger.debug(f"Starting gnuplot: {self.binary} {' '.join(self.args)}")
        try:
            self._process = subprocess.Popen(
                [self.binary, *self.args],
                stdin=subprocess.PIPE,
                stdout=out,
                text=True,
            )
        except (OSError, ValueError) as e:
            raise ResourceError(f"Unable to start gnuplot '{self.binary}': {e}") from e

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def cmd(self, command: str) -> None:
        """Send one command line to gnuplot."""
        if self._process is None:
            raise ResourceError("gnuplot connection is closed")
        try:
            self._process.stdin.write(command + "\n")
            self._process.stdin.flush()
        except (BrokenPipeError, OSError) as e:
            raise ResourceError(f"Lost connection to gnuplot: {e}") from e

    def close(self) -> int | None:
        """Close gnuplot's input and wait for it to finish rendering.

        Returns the exit status, or None if already closed.
        """
        if self._process is None:
            return None
        process, self._process = self._process, None
        try:
            process.stdin.close()
        except (BrokenPipeError, OSError):
            pass  # gnuplot already gone; wait() still reaps it
        status = process.wait()
        get_logger().debug(f"gnuplot exited with status {status}")
        return status


if __name__ == "__main__":
    print("Testing gnuplot connection...")
    print(f"GNUPLOT_PATH: {config.GNUPLOT_PATH}")
    print(f"Terminal:     {detect_standard_terminal()}")

    try:
        print(f"gnuplot:      {find_gnuplot()}")
        conn = GnuplotConnection()
        conn.cmd("print GPVAL_VERSION")
        conn.close()
        print("SUCCESS")
    except ResourceError as e:
        print(f"FAILED: {e.message} ({e.where})")
        sys.exit(1)
