"""
Tests for gnuplot_bridge.commands — PlotSession operations and lifecycle.

A recording FakeConnection (see conftest.py) replaces gnuplot.

Run with: python -m pytest tests/test_commands.py -v
"""

import gc
import os

import numpy as np
import pytest

import config
from gnuplot_bridge.commands import PlotSession, open_session, terminal_for_file
from gnuplot_bridge.errors import ArgumentError, ConsistencyError, ResourceError


def _commands(connections):
    return connections[-1].commands


def _read(path):
    with open(path, encoding="utf-8") as f:
        return f.read().splitlines()


class TestCmdAndTitle:
    def test_cmd_is_verbatim(self, session, connections):
        session.cmd("set grid  # keep spacing")
        assert _commands(connections) == ["set grid  # keep spacing"]

    def test_set_title(self, session, connections):
        session.set_title("Commits per author")
        assert _commands(connections) == ['set title "Commits per author"']


class TestSetOutput:
    def test_terminal_from_extension(self, session, connections):
        session.set_output("out.png")
        assert _commands(connections) == [
            'set output "out.png"',
            f"set terminal png size {config.OUTPUT_WIDTH},{config.OUTPUT_HEIGHT}",
        ]

    def test_size(self, session, connections):
        session.set_output("out.svg", 800, 600)
        assert _commands(connections)[-1] == "set terminal svg size 800,600"

    @pytest.mark.parametrize("file", ["plot.eps", "plot.ps"])
    def test_postscript_alias(self, session, connections, file):
        session.set_output(file, 800, 600)
        assert _commands(connections)[-1] == "set terminal postscript eps color enhanced size 800,600"

    def test_jpg_alias(self, session, connections):
        session.set_output("photo.jpg", 100, 100)
        assert _commands(connections)[-1] == "set terminal jpeg size 100,100"

    @pytest.mark.parametrize("file", ["report", "report."])
    def test_standard_terminal_without_extension(self, session, connections, file):
        session.set_output(file, 640, 480)
        assert _commands(connections)[-1] == f"set terminal {session.standard_terminal} size 640,480"

    def test_explicit_terminal_wins(self, session, connections):
        session.set_output("out.png", 640, 480, "pngcairo")
        assert _commands(connections)[-1] == "set terminal pngcairo size 640,480"

    def test_empty_file_resets_output(self, session, connections):
        session.set_output("", 320, 200)
        assert _commands(connections) == [
            "set output",
            f"set terminal {session.standard_terminal} size 320,200",
        ]

    def test_standard_terminal_is_fallback_when_redirected(self, session):
        assert session.standard_terminal == config.FALLBACK_TERMINAL

    def test_terminal_for_file_ignores_directory_dots(self):
        assert terminal_for_file("out.v2/plot", "svg") == "svg"
        assert terminal_for_file("out.v2/plot.PNG", "svg") == "png"


class TestRanges:
    def test_set_xrange(self, session, connections):
        result = session.set_xrange(0, 100)
        assert result["range"] == [-5.0, 105.0]
        assert _commands(connections) == [
            "set xrange [-5.000000:105.000000]",
            "set x2range [-5.000000:105.000000]",
        ]

    def test_set_xrange_time(self, session, connections):
        session.set_xrange_time(1000000000, 1000000100)
        assert _commands(connections) == [
            "set xrange [53315195:53315305]",
            "set x2range [53315195:53315305]",
        ]


class TestPlotSeries:
    def test_stages_rows_and_plots(self, session, connections):
        result = session.plot_series([1, 2, 3], [[10, 20], [11, 21], [12, 22]], ["a", "b"])
        lines = _read(result["file"])
        assert lines == ["1 10 20", "2 11 21", "3 12 22"]
        assert _commands(connections) == [
            f'plot "{result["file"]}" using 1:2 title "a" with lines, '
            f'"{result["file"]}" using 1:3 title "b" with lines'
        ]

    def test_k_lines_of_n_plus_one_fields(self, session):
        values = np.arange(12).reshape(4, 3)
        result = session.plot_series([0.5, 1.5, 2.5, 3.5], values)
        lines = _read(result["file"])
        assert len(lines) == 4
        assert all(len(line.split()) == 4 for line in lines)
        assert result["num_series"] == 3

    def test_style_string(self, session, connections):
        result = session.plot_series([1], [2], None, "points")
        assert _commands(connections) == [f'plot "{result["file"]}" using 1:2 notitle with points']

    def test_command_override(self, session, connections):
        result = session.plot_series([1, 2], [[1, 2, 3], [4, 5, 6]], ["a"],
                                     {"command": "using 1:3 with points"})
        assert _commands(connections) == [f'plot "{result["file"]}" using 1:3 with points']

    def test_null_title_is_notitle(self, session, connections):
        file = session.plot_series([1, 2], [[1, 2], [3, 4]], [None, "b"])["file"]
        assert _commands(connections)[-1] == (
            f'plot "{file}" using 1:2 notitle with lines, '
            f'"{file}" using 1:3 title "b" with lines'
        )

    def test_options_table_without_style(self, session, connections):
        result = session.plot_series([1], [2], ["t"], {"other": "x"})
        assert _commands(connections) == [f'plot "{result["file"]}" using 1:2 title "t"']

    def test_count_mismatch_sends_nothing(self, session, connections):
        with pytest.raises(ConsistencyError):
            session.plot_series([1, 2, 3], [[1], [2]])
        assert _commands(connections) == []
        assert session.temp_files == []

    def test_temp_file_kept_until_flush(self, session):
        result = session.plot_series([1], [1])
        assert os.path.exists(result["file"])
        assert session.temp_files == [result["file"]]


class TestPlotMultiSeries:
    def test_one_file_per_series(self, session, connections):
        result = session.plot_multi_series([[1, 2], [5, 6, 7]], [[3, 4], [8, 9, 10]], ["x", "y"])
        first, second = result["files"]
        assert _read(first) == ["1 3", "2 4"]
        assert _read(second) == ["5 8", "6 9", "7 10"]
        assert _commands(connections) == [
            f'plot "{first}" using 1:2 title "x" with lines, "{second}" using 1:2 title "y" with lines'
        ]

    def test_mismatch(self, session, connections):
        with pytest.raises(ConsistencyError):
            session.plot_multi_series([[1, 2]], [[1]])
        assert _commands(connections) == []


class TestPlotHistogram:
    def test_histogram(self, session, connections):
        result = session.plot_histogram(["alice", "bob"], [[3, 1], [5, 2]], ["added", "removed"])
        assert _read(result["file"]) == ['"alice" 3 1', '"bob" 5 2']
        assert _commands(connections) == [
            "set style data histogram",
            f'plot "{result["file"]}" using 2:xtic(1) title "added", '
            f'"{result["file"]}" using 3:xtic(1) title "removed"',
        ]

    def test_no_default_style(self, session, connections):
        result = session.plot_histogram(["a"], [1])
        assert _commands(connections)[-1] == f'plot "{result["file"]}" using 2:xtic(1) notitle'

    def test_inconsistent_rows_rejected_before_any_command(self, session, connections):
        with pytest.raises(ConsistencyError):
            session.plot_histogram(["a", "b"], [[1, 2], [1, 2, 3]])
        assert _commands(connections) == []


class TestCall:
    def test_success(self, session, connections):
        assert session.call("set_title", "T")["status"] == "success"
        assert _commands(connections) == ['set title "T"']

    def test_count_mismatch_result(self, session):
        result = session.call("plot_series", [1, 2, 3], [[1], [2]])
        assert result["status"] == "error"
        assert "2 != 3" in result["message"]

    def test_arity_error(self, session):
        result = session.call("plot_series", [1], [1], [], "lines", "extra")
        assert result == {
            "status": "error",
            "message": "Invalid number of arguments (expected 2-4, got 5)",
        }

    def test_type_error(self, session, connections):
        result = session.call("plot_histogram", "abc", [1])
        assert result["status"] == "error"
        assert "must be an array" in result["message"]
        assert _commands(connections) == []

    def test_unknown_operation(self, session):
        result = session.call("plot_pie", [1])
        assert result["status"] == "error"
        assert "Unknown method" in result["message"]

    def test_optional_none_arguments(self, session, connections):
        result = session.call("set_output", "a.png", None, None, None)
        assert result["status"] == "success"
        assert _commands(connections)[-1] == f"set terminal png size {config.OUTPUT_WIDTH},{config.OUTPUT_HEIGHT}"

    @pytest.mark.parametrize("op, start, end", [
        ("set_xrange_time", float("nan"), 1000),
        ("set_xrange_time", 0, float("inf")),
        ("set_xrange", float("-inf"), 1.0),
        ("set_xrange_time", np.datetime64("NaT"), 1000),
    ])
    def test_non_finite_range_is_an_error_result(self, session, connections, op, start, end):
        result = session.call(op, start, end)
        assert result["status"] == "error"
        assert "must be finite" in result["message"]
        assert _commands(connections) == []


class TestLifecycle:
    def test_open_uses_factory_once(self, session, connections):
        assert session.is_open
        assert len(connections) == 1

    def test_flush_recreates_connection_and_removes_files(self, session, connections):
        path = session.plot_series([1], [1])["file"]
        result = session.flush()
        assert result["temp_files_removed"] == 1
        assert connections[0].closed
        assert len(connections) == 2
        assert not os.path.exists(path)
        assert session.temp_files == []
        session.cmd("replot")
        assert connections[1].commands == ["replot"]

    def test_flush_failure_leaves_session_alive(self, factory, tmp_path):
        attempts = {"n": 0}

        def flaky(out=None):
            attempts["n"] += 1
            if attempts["n"] == 2:
                raise ResourceError("Unable to start gnuplot 'gnuplot': boom")
            return factory(out)

        session = PlotSession(output_redirected=True, connection_factory=flaky, temp_dir=str(tmp_path))
        session.open()
        result = session.call("flush")
        assert result["status"] == "error"
        assert result["where"]
        assert not session.is_open

        result = session.call("cmd", "replot")
        assert result["status"] == "error"
        assert "not running" in result["message"]

        assert session.call("flush")["status"] == "success"
        assert session.call("cmd", "replot")["status"] == "success"
        session.close()

    def test_close_removes_files_and_is_idempotent(self, session, connections):
        paths = [session.plot_series([1], [1])["file"] for _ in range(3)]
        session.close()
        assert connections[0].closed
        assert not session.is_open
        assert session.temp_files == []
        assert not any(os.path.exists(p) for p in paths)
        session.close()

    def test_flush_then_close(self, session, connections):
        session.plot_histogram(["a"], [1])
        session.flush()
        session.close()
        assert session.temp_files == []
        assert all(c.closed for c in connections)

    def test_open_failure(self, tmp_path):
        def broken(out=None):
            raise ResourceError("Unable to start gnuplot 'x': missing")

        session = PlotSession(connection_factory=broken, temp_dir=str(tmp_path))
        with pytest.raises(ResourceError):
            session.open()
        assert not session.is_open
        with pytest.raises(ResourceError, match="not running"):
            session.cmd("plot x")
        session.close()

    def test_context_manager(self, factory, connections, tmp_path):
        with PlotSession(connection_factory=factory, temp_dir=str(tmp_path)) as session:
            path = session.plot_series([1, 2], [3, 4])["file"]
        assert connections[0].closed
        assert not os.path.exists(path)

    def test_open_session(self, factory, connections, tmp_path):
        session = open_session(connection_factory=factory, temp_dir=str(tmp_path))
        assert session.is_open
        session.close()
        assert connections[0].closed

    def test_dropped_session_cleans_up(self, factory, connections, tmp_path):
        session = open_session(connection_factory=factory, temp_dir=str(tmp_path))
        path = session.plot_series([1, 2], [3, 4])["file"]
        del session
        gc.collect()
        assert connections[0].closed
        assert not os.path.exists(path)

    def test_finalizer_after_close_is_harmless(self, factory, connections, tmp_path):
        session = open_session(connection_factory=factory, temp_dir=str(tmp_path))
        session.close()
        assert session._finalizer() == 0


class TestArgumentErrors:
    def test_bad_style_type(self, session):
        with pytest.raises(ArgumentError):
            session.plot_series([1], [1], None, 42)
