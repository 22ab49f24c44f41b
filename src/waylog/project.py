"""Project root resolution for the CLI commands."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

from rich.prompt import Confirm

from waylog.output import Output
from waylog.paths import WAYLOG_DIR, find_project_root


def ask_to_initialize() -> bool:
    """Ask whether to start tracking in the current directory.

    A non-interactive stdin counts as "no", so scripted pulls never create
    a project by accident.
    """
    if not sys.stdin.isatty():
        return False
    try:
        return Confirm.ask("Initialize?", default=True)
    except EOFError:
        return False


def resolve_project_root(
    command: str,
    output: Output,
    cwd: Path | None = None,
    confirm: Callable[[], bool] = ask_to_initialize,
) -> Path | None:
    """Find the project a command operates on.

    ``run`` always gets a project: an existing one above ``cwd`` or ``cwd``
    itself. ``pull`` offers to initialize ``cwd`` when no project exists.

    Args:
        command: "run" or "pull".
        output: Where to print status and the prompt text.
        cwd: Starting directory. Defaults to the process working directory.
        confirm: Asks the user; replaced in tests.

    Returns:
        The project root, or None if the user declined initialization.
    """
    cwd = (cwd or Path.cwd()).resolve()
    found = find_project_root(cwd)

    if command == "run":
        return found or cwd

    if found is not None:
        output.found_tracking(found)
        return found

    output.not_initialized()
    output.init_prompt(cwd / WAYLOG_DIR)
    if confirm():
        return cwd
    output.aborted()
    return None
