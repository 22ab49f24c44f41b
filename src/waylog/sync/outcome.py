"""Per-file synchronization outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Synced:
    """New messages were written to the artifact."""

    new_messages: int


@dataclass(frozen=True)
class UpToDate:
    """The artifact already holds every message."""


@dataclass(frozen=True)
class Skipped:
    """The transcript has no exportable messages; no artifact is created."""


@dataclass(frozen=True)
class Failed:
    """Parsing or writing failed for this file."""

    error: Exception

    def __str__(self) -> str:
        return str(self.error)


SyncOutcome = Synced | UpToDate | Skipped | Failed


@dataclass(frozen=True)
class SyncResult:
    source_path: Path
    outcome: SyncOutcome
