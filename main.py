#!/usr/bin/env python3
"""
gnuplot-bridge - Main Entry Point

Runs one or more JSON plot scripts through a single gnuplot session.

Usage:
    python main.py report.json              # Run a plot script
    python main.py a.json b.json --verbose  # Show every gnuplot command
    python main.py report.json --redirected # Never use the display terminal
    python main.py --list-methods           # Show available operations
    python main.py --errors                 # Show recent errors from logs
"""

import argparse
import sys

from gnuplot_bridge.commands import PlotSession
from gnuplot_bridge.errors import BridgeError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render JSON plot scripts with gnuplot")
    parser.add_argument("scripts", nargs="*", help="Plot script files (JSON arrays of calls)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show debug output, including every gnuplot command")
    parser.add_argument("--redirected", action="store_true",
                        help="Treat report output as redirected (no interactive terminal)")
    parser.add_argument("--keep-going", action="store_true",
                        help="Continue with the next call after a failing one")
    parser.add_argument("--list-methods", action="store_true",
                        help="List the operations plot scripts can call")
    parser.add_argument("--errors", action="store_true",
                        help="Show recent errors from the log files")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_methods:
        from gnuplot_bridge.registry import render_method_catalog
        print(render_method_catalog())
        return 0

    from gnuplot_bridge.logging import print_recent_errors, setup_logging

    if args.errors:
        print_recent_errors()
        return 0

    if not args.scripts:
        build_parser().print_usage(sys.stderr)
        return 2

    setup_logging(verbose=args.verbose)

    from gnuplot_bridge.script_runner import (
        load_plot_script,
        run_plot_script,
        validate_plot_script,
    )

    # Load and validate everything before gnuplot is started
    scripts = []
    for path in args.scripts:
        try:
            calls = load_plot_script(path)
        except BridgeError as e:
            print(f"{e.where}: {e.message}", file=sys.stderr)
            return 1
        violations = validate_plot_script(calls)
        if violations:
            print(f"{path}: validation failed:", file=sys.stderr)
            for v in violations:
                print(f"  - {v}", file=sys.stderr)
            return 1
        scripts.append((path, calls))

    session = PlotSession(output_redirected=args.redirected)
    try:
        session.open()
    except BridgeError as e:
        print(f"Error: {e.message} ({e.where})", file=sys.stderr)
        return 1

    exit_code = 0
    try:
        for path, calls in scripts:
            result = run_plot_script(calls, session, source=path,
                                     stop_on_error=not args.keep_going)
            if result["status"] != "success":
                print(result["message"], file=sys.stderr)
                exit_code = 1
                if not args.keep_going:
                    break
    finally:
        session.close()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
