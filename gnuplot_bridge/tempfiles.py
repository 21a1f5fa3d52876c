"""
Scratch data files handed to gnuplot.

Files stay on disk after the plot command referencing them is sent:
gnuplot reads them asynchronously, so they are only removed when the
session flushes or closes.
"""

import os
import tempfile
from dataclasses import dataclass
from typing import TextIO

import config
from gnuplot_bridge.errors import ResourceError
from gnuplot_bridge.logging import get_logger


@dataclass
class TempFile:
    """A registered scratch file and its open write stream."""

    path: str
    handle: TextIO

    def close(self) -> None:
        if not self.handle.closed:
            self.handle.flush()
            self.handle.close()


class TempFileStore:
    """Creates uniquely named scratch files and removes them in bulk."""

    def __init__(self, directory: str | None = None, prefix: str | None = None):
        self.directory = directory if directory is not None else config.TEMP_DIR
        self.prefix = prefix if prefix is not None else config.TEMP_PREFIX
        self._paths: list[str] = []

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def create(self, suffix: str = ".dat") -> TempFile:
        """Create a new scratch file opened for writing.

        The path is tracked before the stream is opened, so it is cleaned up
        by remove_all() even if opening or writing fails afterwards.

        Raises:
            ResourceError: If the file cannot be created or opened.
        """
        try:
            fd, path = tempfile.mkstemp(suffix=suffix, prefix=self.prefix, dir=self.directory)
        except OSError as e:
            raise ResourceError(f"Unable to create temporary file in '{self.directory or tempfile.gettempdir()}': {e}") from e

        self._paths.append(path)
        try:
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except OSError as e:
            os.close(fd)
            raise ResourceError(f"Unable to open temporary file '{path}': {e}") from e
        return TempFile(path=path, handle=handle)

    def remove_all(self) -> int:
        """Delete every tracked file, ignoring failures. Returns the count tracked."""
        count = len(self._paths)
        for path in self._paths:
            try:
                os.unlink(path)
            except OSError as e:
                get_logger().debug(f"Could not remove temp file {path}: {e}")
        self._paths.clear()
        return count
