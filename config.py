import json
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

# User config — loaded from ~/.gnuplot-bridge/config.json (overlay)
# on top of project-root config.json (base).
CONFIG_PATH = Path.home() / ".gnuplot-bridge" / "config.json"
_LOCAL_CONFIG_PATH = Path(__file__).resolve().parent / "config.json"
_user_config: dict = {}


def _load_config() -> dict:
    # Project-local config.json as base, user home config overlaid on top
    merged: dict = {}
    for path in (_LOCAL_CONFIG_PATH, CONFIG_PATH):
        if path is not None and path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    merged.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                pass
    return merged


def get(key: str, default=None):
    """Get a config value by dot-separated key. E.g. get('output.width', 640)"""
    keys = key.split(".")
    val = _user_config
    for k in keys:
        if isinstance(val, dict):
            val = val.get(k)
        else:
            return default
    return val if val is not None else default


_user_config = _load_config()


# ---- Data directory -----------------------------------------------------------
# Base directory for logs and other per-user state.
# Priority: GNUPLOT_BRIDGE_DIR env var > "data_dir" config key > ~/.gnuplot-bridge

_data_dir: Optional[Path] = None


def get_data_dir() -> Path:
    """Return the resolved base data directory.

    Resolution order:
    1. ``GNUPLOT_BRIDGE_DIR`` environment variable (highest — useful for CI)
    2. ``"data_dir"`` key in config.json
    3. ``~/.gnuplot-bridge`` (default)
    """
    global _data_dir
    if _data_dir is not None:
        return _data_dir
    env_val = os.environ.get("GNUPLOT_BRIDGE_DIR")
    if env_val:
        _data_dir = Path(env_val).expanduser().resolve()
    else:
        configured = get("data_dir")
        if configured:
            _data_dir = Path(configured).expanduser().resolve()
        else:
            _data_dir = Path.home() / ".gnuplot-bridge"
    return _data_dir


def _reset_data_dir() -> None:
    """Reset the cached data directory (for testing only)."""
    global _data_dir
    _data_dir = None


# ---- Gnuplot engine -----------------------------------------------------------
GNUPLOT_PATH = os.getenv("GNUPLOT_PATH") or get("gnuplot_path")  # None → search PATH
GNUPLOT_ARGS = get("gnuplot_args", ["-persist"])

# Terminal used when no output file extension says otherwise.
# DISPLAY_TERMINAL applies to interactive X sessions, FALLBACK_TERMINAL elsewhere.
DISPLAY_TERMINAL = get("display_terminal", "x11")
FALLBACK_TERMINAL = get("fallback_terminal", "svg")

OUTPUT_WIDTH = get("output.width", 640)
OUTPUT_HEIGHT = get("output.height", 480)

# ---- Scratch data files -------------------------------------------------------
TEMP_DIR = get("temp_dir")  # None → system temp directory
TEMP_PREFIX = get("temp_prefix", "gnuplot-bridge-")
