"""Error taxonomy for waylog.

Every error that can reach the top level carries the process exit code it
maps to. Codes follow the BSD ``sysexits.h`` conventions so that scripts
composing waylog can tell a usage mistake from a missing tool.
"""

from __future__ import annotations

from pathlib import Path

EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_NOINPUT = 66
EX_UNAVAILABLE = 69
EX_SOFTWARE = 70

# Shell conventions: 128 + signal number
EXIT_INTERRUPTED = 130
EXIT_TERMINATED = 143


class WaylogError(Exception):
    """Base class for all waylog errors."""

    exit_code: int = EX_SOFTWARE


class MissingAgentError(WaylogError):
    """`run` was invoked without an agent name."""

    exit_code = EX_USAGE

    def __init__(self) -> None:
        super().__init__("Missing required argument <AGENT>")


class ProviderNotFoundError(WaylogError):
    """The requested agent/provider name is not one waylog knows about."""

    exit_code = EX_USAGE

    def __init__(self, name: str) -> None:
        super().__init__(f"Provider not found: {name}")
        self.name = name


class AgentNotInstalledError(WaylogError):
    """The wrapped CLI tool is not on PATH or could not be spawned."""

    exit_code = EX_UNAVAILABLE

    def __init__(self, command: str) -> None:
        super().__init__(f"Agent not installed: {command}")
        self.command = command


class ParseError(WaylogError):
    """A transcript file contains a record that cannot be decoded."""

    exit_code = EX_DATAERR

    def __init__(self, path: Path | str, detail: str, line: int | None = None) -> None:
        location = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"Failed to parse {location}: {detail}")
        self.path = Path(path)
        self.line = line


class PathError(WaylogError):
    """A required directory (home, provider data dir) cannot be resolved."""

    exit_code = EX_SOFTWARE


class InternalError(WaylogError):
    """An invariant inside waylog was violated."""

    exit_code = EX_SOFTWARE


def exit_code_for(error: BaseException) -> int:
    """Map any exception reaching the top level to a process exit code."""
    if isinstance(error, WaylogError):
        return error.exit_code
    if isinstance(error, OSError):
        return EX_NOINPUT
    return EX_SOFTWARE
