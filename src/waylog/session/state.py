"""Tracker entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class SessionState:
    """What waylog knows about one session's markdown artifact.

    ``synced_message_count`` is the low-water mark of messages durably
    written to ``markdown_path``. ``source_path`` is None for entries
    recovered from markdown alone.
    """

    session_id: str
    provider: str
    markdown_path: Path
    synced_message_count: int = 0
    source_path: Path | None = None
    last_sync_time: datetime | None = None
