"""
Shared fixtures. gnuplot is never started: sessions get a recording fake
connection, and log files go to a throwaway data directory.
"""

import os
import tempfile

# Must happen before config / gnuplot_bridge.logging are imported
os.environ["GNUPLOT_BRIDGE_DIR"] = tempfile.mkdtemp(prefix="gnuplot-bridge-tests-")

import pytest

from gnuplot_bridge.commands import PlotSession


class FakeConnection:
    """Stands in for GnuplotConnection and records every command."""

    def __init__(self, out=None):
        self.out = out
        self.commands: list[str] = []
        self.closed = False

    def cmd(self, command: str) -> None:
        self.commands.append(command)

    def close(self) -> int:
        self.closed = True
        return 0


@pytest.fixture
def connections():
    """Every FakeConnection created by the factory fixture, oldest first."""
    return []


@pytest.fixture
def factory(connections):
    def make(out=None):
        conn = FakeConnection(out)
        connections.append(conn)
        return conn
    return make


@pytest.fixture
def session(factory, tmp_path):
    """An open PlotSession staging data files under tmp_path."""
    s = PlotSession(output_redirected=True, connection_factory=factory, temp_dir=str(tmp_path))
    s.open()
    yield s
    s.close()
