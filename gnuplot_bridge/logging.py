"""
Logging configuration for gnuplot-bridge.

Two destinations:

  - File: always DEBUG, one file per run, every gnuplot command included
  - Console (stderr): DEBUG if --verbose, WARNING+ otherwise
  - Format: "timestamp | level | name | session_id | message"
  - Config console_format options:
    - "simple" — (default) bare messages for DEBUG/INFO, [LEVEL] prefix for WARNING+
    - "full"   — same structured format as the file handler
    - "tagged" — only records tagged with a key in VISIBLE_TAGS
    - "clean"  — no console output at all (file logging still active)

Log files are stored in ~/.gnuplot-bridge/logs/ with one file per run.
"""

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import get_data_dir


# Log directory
LOG_DIR = get_data_dir() / "logs"

LOGGER_NAME = "gnuplot-bridge"

# Tags shown by the "tagged" console format.
VISIBLE_TAGS = frozenset({
    "command",  # raw commands forwarded from scripts
    "plot",     # composed plot directives
    "session",  # session open / flush / close
    "error",    # log_error() summaries
})


def tagged(tag: str) -> dict:
    """Return ``extra`` dict for logger calls: ``logger.debug("...", extra=tagged("x"))``."""
    return {"log_tag": tag}


# Module-level state (shared across re-inits)
_session_filter: Optional["_SessionFilter"] = None
_current_log_file: Optional[Path] = None


class _SessionFilter(logging.Filter):
    """Injects session_id into every log record."""

    def __init__(self) -> None:
        super().__init__()
        self.session_id = ""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = self.session_id or "-"
        if not hasattr(record, "log_tag"):
            record.log_tag = ""
        return True


class _ConsoleFormatter(logging.Formatter):
    """Console formatter: shows [LEVEL] prefix only for WARNING and above."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return f"  [{record.levelname}] {record.getMessage()}"
        return f"  {record.getMessage()}"


class _TagFilter(logging.Filter):
    """Pass only records tagged with a key in VISIBLE_TAGS."""

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "log_tag", "") in VISIBLE_TAGS


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging for the bridge.

    Args:
        verbose: If True, show DEBUG level on console; otherwise WARNING+ only

    Returns:
        Configured logger instance
    """
    global _session_filter, _current_log_file
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Capture everything, filter at handler level
    logger.propagate = False

    # Clear existing handlers (in case of re-init)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    # Session filter — reuse existing instance to preserve session_id across re-inits
    if _session_filter is None:
        _session_filter = _SessionFilter()
    if _session_filter not in logger.filters:
        logger.addFilter(_session_filter)

    # File handler - one log file per run
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = LOG_DIR / f"bridge_{timestamp}.log"
    _current_log_file = log_file
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(session_id)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    import config as _config
    console_format = _config.get("console_format", "simple")

    if console_format != "clean":
        console_handler = logging.StreamHandler(sys.stderr)

        if console_format == "tagged":
            console_handler.setLevel(logging.DEBUG)
            console_handler.addFilter(_TagFilter())
            console_handler.setFormatter(_ConsoleFormatter())
        elif console_format == "full":
            console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            console_handler.setFormatter(file_format)
        else:
            # "simple" (default)
            console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            console_handler.setFormatter(_ConsoleFormatter())

        logger.addHandler(console_handler)

    logger.info("=" * 60)
    logger.info(f"Run started at {datetime.now().isoformat()}")
    logger.info(f"Log file: {log_file}")

    return logger


def get_logger() -> logging.Logger:
    """Get the bridge logger instance.

    Returns:
        The gnuplot-bridge logger (creates with defaults if not configured)
    """
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        return setup_logging(verbose=False)
    return logger


def set_session_id(session_id: str) -> None:
    """Set the session ID that will be included in all subsequent log lines."""
    global _session_filter
    if _session_filter is None:
        # Logger not set up yet — create filter so it's ready when logging starts
        _session_filter = _SessionFilter()
    _session_filter.session_id = session_id


def log_command(command: str) -> None:
    """Log one command sent to gnuplot."""
    get_logger().debug(f"gnuplot> {command}", extra=tagged("command"))


def log_error(
    message: str,
    exc: Optional[Exception] = None,
    context: Optional[dict] = None,
) -> None:
    """Log an error with full details including stack trace.

    Args:
        message: Error description
        exc: Optional exception to include stack trace from
        context: Optional dict of additional context (operation name, args, etc.)
    """
    logger = get_logger()

    lines = [message]

    if context:
        lines.append("Context:")
        for key, value in context.items():
            lines.append(f"  {key}: {value}")

    if exc:
        lines.append(f"Exception type: {type(exc).__name__}")
        lines.append(f"Exception message: {exc}")
        where = getattr(exc, "where", None)
        if where:
            lines.append(f"Origin: {where}")
        if exc.__traceback__ is not None:
            lines.append("Stack trace:")
            lines.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

    # Full details are DEBUG so the console only shows the summary below
    logger.debug("\n".join(lines))

    short = message if len(message) <= 200 else message[:200] + "..."
    logger.error(short, extra=tagged("error"))


def log_session_start(session_id: str, terminal: str) -> None:
    logger = get_logger()
    logger.info(f"Session {session_id} opened (standard terminal: {terminal})",
                extra=tagged("session"))


def log_session_end(stats: dict) -> None:
    """Log session end with usage stats.

    Args:
        stats: Dict with commands, plots, temp_files
    """
    logger = get_logger()
    logger.info(
        f"Session closed. Commands: {stats.get('commands', 0):,}, "
        f"plots: {stats.get('plots', 0):,}, "
        f"temp files removed: {stats.get('temp_files', 0):,}",
        extra=tagged("session"),
    )
    logger.info("=" * 60)


def get_current_log_path() -> Path:
    """Return the path to the current run's log file."""
    if _current_log_file is not None:
        return _current_log_file
    logs = sorted(LOG_DIR.glob("bridge_*.log"))
    if logs:
        return logs[-1]
    return LOG_DIR / f"bridge_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


def get_recent_errors(days: int = 7, limit: int = 50) -> list[dict]:
    """Retrieve recent errors from log files.

    Args:
        days: How many days back to search
        limit: Maximum number of errors to return

    Returns:
        List of error entries with timestamp, level, session_id and message
    """
    errors = []
    cutoff = datetime.now().timestamp() - days * 86400
    # Newest first
    log_files = sorted(LOG_DIR.glob("bridge_*.log"), reverse=True)

    for log_file in log_files:
        if log_file.stat().st_mtime < cutoff:
            break

        try:
            with open(log_file, "r", encoding="utf-8") as f:
                for line in f:
                    if "| ERROR" not in line and "| WARNING" not in line:
                        continue
                    # Format: timestamp | level | name | session_id | message
                    parts = line.split(" | ", 4)
                    if len(parts) < 5:
                        continue
                    errors.append({
                        "timestamp": parts[0].strip(),
                        "level": parts[1].strip(),
                        "session_id": parts[3].strip(),
                        "message": parts[4].strip(),
                    })
        except OSError:
            continue

        if len(errors) >= limit:
            break

    return errors[:limit]


def print_recent_errors(days: int = 7, limit: int = 10) -> None:
    """Print recent errors to console for review."""
    errors = get_recent_errors(days=days, limit=limit)

    if not errors:
        print(f"No errors found in the last {days} days.")
        return

    print(f"Recent errors (last {days} days, showing up to {limit}):")
    print("-" * 60)
    for i, error in enumerate(errors, 1):
        print(f"{i}. [{error['timestamp']}] {error['level']} ({error['session_id']})")
        print(f"   {error['message']}")
    print("-" * 60)
    print(f"Full logs available at: {LOG_DIR}")
