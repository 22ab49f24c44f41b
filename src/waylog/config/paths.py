"""Configuration file locations.

- User: $XDG_CONFIG_HOME/waylog/, ~/.config/waylog/ or ~/.waylog/
- Project: <project>/.waylog/
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "waylog"
SHORT_NAME = ".waylog"


def get_user_config_path() -> Path | None:
    """Get user-level config path.

    Returns:
        Path to user config file, or None if the home directory is unknown.
        The file may not exist.
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    try:
        home = Path.home()
    except RuntimeError:
        return None

    # Prefer ~/.config/waylog if ~/.config exists
    xdg_default = home / ".config"
    if xdg_default.exists():
        return xdg_default / APP_NAME / CONFIG_FILENAME

    return home / SHORT_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str | Path) -> Path:
    """Get project-level config path (may not exist)."""
    return Path(project_root) / SHORT_NAME / CONFIG_FILENAME


def get_config_paths(project_root: str | Path | None = None) -> list[Path]:
    """Get all config paths in load order, lowest priority first."""
    paths: list[Path] = []
    user = get_user_config_path()
    if user is not None:
        paths.append(user)
    if project_root is not None:
        paths.append(get_project_config_path(project_root))
    return paths
