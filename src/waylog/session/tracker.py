"""Session tracking without a journal.

The tracker maps session ids to their markdown artifacts and how many
messages each already holds. It has no state file: on startup it is rebuilt
from the artifacts' headers, and after each write the header itself is the
durable record.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

from waylog.exporter.frontmatter import parse_frontmatter
from waylog.logging import get_logger
from waylog.session.state import SessionState

log = get_logger("tracker")


def restore_from_disk(history_dir: Path, provider: str) -> dict[str, SessionState]:
    """Rebuild tracker entries from the markdown artifacts in a directory.

    Only the header window of each file is read. Files without a header,
    without a ``session_id``, or belonging to another provider are ignored.
    A header without a provider is assumed to belong to ``provider``. A
    missing directory yields no entries.

    Args:
        history_dir: Directory holding the markdown artifacts.
        provider: Provider whose sessions to recover.

    Returns:
        Mapping of session id to recovered state.
    """
    sessions: dict[str, SessionState] = {}
    if not history_dir.is_dir():
        return sessions

    for path in sorted(history_dir.glob("*.md")):
        try:
            header = parse_frontmatter(path)
        except OSError as e:
            log.debug("Skipping unreadable artifact %s: %s", path, e)
            continue
        if header is None or not header.session_id:
            continue
        if (header.provider or provider) != provider:
            continue

        count = header.message_count or 0
        previous = sessions.get(header.session_id)
        if previous is not None and previous.synced_message_count >= count:
            log.warning(
                "Duplicate artifact for session %s: %s (keeping %s)",
                header.session_id, path.name, previous.markdown_path.name,
            )
            continue

        sessions[header.session_id] = SessionState(
            session_id=header.session_id,
            provider=provider,
            markdown_path=path,
            synced_message_count=count,
        )

    log.debug("Restored %d %s session(s) from %s", len(sessions), provider, history_dir)
    return sessions


class SessionTracker:
    """Per-provider map of session id to SessionState.

    All access goes through one lock so watcher polls and pull syncs can
    share an instance.
    """

    def __init__(
        self,
        history_dir: Path,
        provider: str,
        sessions: dict[str, SessionState] | None = None,
    ) -> None:
        self.history_dir = history_dir
        self.provider = provider
        self._sessions: dict[str, SessionState] = dict(sessions or {})
        self._lock = asyncio.Lock()

    @classmethod
    async def restore(cls, history_dir: Path, provider: str) -> SessionTracker:
        """Create a tracker populated from the artifacts in ``history_dir``."""
        loop = asyncio.get_running_loop()
        sessions = await loop.run_in_executor(None, restore_from_disk, history_dir, provider)
        return cls(history_dir, provider, sessions)

    async def get_synced_count(self, session_id: str) -> int:
        async with self._lock:
            state = self._sessions.get(session_id)
            return state.synced_message_count if state else 0

    async def get_markdown_path(self, session_id: str) -> Path | None:
        async with self._lock:
            state = self._sessions.get(session_id)
            return state.markdown_path if state else None

    async def get_state(self, session_id: str) -> SessionState | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def update(
        self,
        session_id: str,
        source_path: Path | None,
        markdown_path: Path,
        synced_count: int,
    ) -> None:
        """Insert or replace the entry for a session."""
        async with self._lock:
            self._sessions[session_id] = SessionState(
                session_id=session_id,
                provider=self.provider,
                markdown_path=markdown_path,
                synced_message_count=synced_count,
                source_path=source_path,
                last_sync_time=datetime.now(timezone.utc),
            )

    async def save(self) -> None:
        """No-op: the artifacts' headers are the persisted state."""

    def __len__(self) -> int:
        return len(self._sessions)
