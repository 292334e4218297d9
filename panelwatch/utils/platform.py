"""Per-OS locations for the YAML config and the snapshot database."""

from __future__ import annotations

import os
import sys
from pathlib import Path

_APP = "panelwatch"


def _user_dir(override_env: str, windows_env: str, xdg_env: str, xdg_default: str) -> Path:
    override = os.environ.get(override_env)
    if override:
        return Path(override)
    if sys.platform == "win32":
        return Path(os.environ.get(windows_env, Path.home() / "AppData")) / _APP
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / _APP
    return Path(os.environ.get(xdg_env, Path.home() / xdg_default)) / _APP


def get_config_dir() -> Path:
    """Directory searched for ``config.yaml`` when no path is given."""
    return _user_dir("PANELWATCH_CONFIG_DIR", "APPDATA", "XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """Default home of ``snapshots.db``."""
    return _user_dir("PANELWATCH_DATA_DIR", "LOCALAPPDATA", "XDG_DATA_HOME", ".local/share")
