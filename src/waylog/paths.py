"""Filesystem layout helpers.

Resolves the user's home and provider data directories, encodes project
paths the way each assistant tool keys its transcript storage, and locates
the project-local ``.waylog`` directory.
"""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path

from waylog.errors import PathError

WAYLOG_DIR = ".waylog"
HISTORY_DIR = "history"
LOGS_DIR = "logs"

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
SLUG_MAX_LENGTH = 50


def home_dir() -> Path:
    """Return the current user's home directory.

    Raises:
        PathError: If the home directory cannot be determined.
    """
    try:
        return Path.home()
    except RuntimeError as e:
        raise PathError(f"Could not determine home directory: {e}") from e


def get_ai_data_dir(tool: str) -> Path:
    """Return the private data directory of an assistant tool (``~/.<tool>``)."""
    return home_dir() / f".{tool}"


def encode_path_claude(path: Path | str) -> str:
    """Encode a project path the way Claude Code names its project folders.

    Backslashes are normalized to slashes, then every character that is not
    an ASCII letter, digit or ``-`` becomes ``-``. Multi-byte characters map
    to a single ``-`` each.
    """
    text = str(path).replace("\\", "/")
    return "".join(c if (c.isascii() and c.isalnum()) or c == "-" else "-" for c in text)


def encode_path_gemini(path: Path | str) -> str:
    """Encode a project path the way Gemini CLI names its temp folders (SHA-256 hex)."""
    return hashlib.sha256(str(path).encode("utf-8")).hexdigest()


def get_waylog_dir(project_root: Path) -> Path:
    return project_root / WAYLOG_DIR


def get_history_dir(project_root: Path) -> Path:
    """Directory that holds the markdown artifacts for a project."""
    return project_root / WAYLOG_DIR / HISTORY_DIR


def get_logs_dir(project_root: Path) -> Path:
    return project_root / WAYLOG_DIR / LOGS_DIR


def ensure_dir_exists(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk upward from ``start`` looking for an initialized project.

    The search stops at the user's home directory (inclusive) or at the
    filesystem root.

    Args:
        start: Directory to start from. Defaults to the current directory.

    Returns:
        The directory containing ``.waylog``, or None if there is none.
    """
    current = (start or Path.cwd()).resolve()
    try:
        home: Path | None = home_dir().resolve()
    except PathError:
        home = None

    while True:
        if (current / WAYLOG_DIR).is_dir():
            return current
        if current == home or current.parent == current:
            return None
        current = current.parent


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Turn free text into a lowercase, dash-separated file name fragment."""
    slug = _SLUG_STRIP.sub("-", text.lower()).strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


def is_same_path(a: Path | str, b: Path | str) -> bool:
    """Compare two paths after normalization, without touching the filesystem."""
    return os.path.normpath(str(a)) == os.path.normpath(str(b))
