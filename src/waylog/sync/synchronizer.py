"""Incremental transcript synchronization.

One algorithm serves both triggers: ``waylog pull`` calls sync_all() and the
live watcher calls sync_file() on the newest transcript. For each file the
tracker's synced count is compared with the parsed message count and the
difference is either appended, written fresh, or nothing at all.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from waylog.errors import InternalError, WaylogError
from waylog.exporter.frontmatter import parse_frontmatter
from waylog.exporter.markdown import append_messages, create_markdown_file, markdown_filename
from waylog.logging import get_logger
from waylog.providers.base import ChatSession, Provider
from waylog.session.tracker import SessionTracker
from waylog.sync.outcome import Failed, Skipped, Synced, SyncOutcome, SyncResult, UpToDate

log = get_logger("sync")

# Errors contained to a single file; anything else is a bug and propagates
_FILE_ERRORS = (WaylogError, OSError, ValueError)


class Synchronizer:
    """Mirrors one provider's transcripts for a project into markdown."""

    def __init__(self, provider: Provider, project_path: Path, tracker: SessionTracker) -> None:
        self.provider = provider
        self.project_path = project_path
        self.tracker = tracker

    @property
    def history_dir(self) -> Path:
        return self.tracker.history_dir

    async def sync_all(self, force: bool = False) -> list[SyncResult]:
        """Synchronize every candidate transcript of the project.

        A failure on one file is recorded as its outcome and the batch
        continues.

        Args:
            force: Re-examine sessions the tracker already considers complete.

        Returns:
            One result per candidate, newest transcript first.

        Raises:
            PathError: If the provider's data directory cannot be resolved.
        """
        candidates = await asyncio.get_running_loop().run_in_executor(
            None, self.provider.list_session_candidates, self.project_path
        )
        log.debug("%s: %d candidate transcript(s)", self.provider.name, len(candidates))

        results = []
        for path in candidates:
            results.append(SyncResult(path, await self.sync_file(path, force=force)))
        return results

    async def sync_file(self, path: Path, force: bool = False) -> SyncOutcome:
        """Bring the artifact for one transcript up to date."""
        try:
            session = await asyncio.get_running_loop().run_in_executor(
                None, self.provider.parse_session, path
            )
        except _FILE_ERRORS as e:
            log.warning("Failed to parse %s: %s", path, e)
            return Failed(e)

        if not session.messages:
            log.debug("Skipping %s: no exportable messages", path)
            return Skipped()

        if session.project_path is None:
            session.project_path = self.project_path

        try:
            return await self._apply(path, session, force)
        except _FILE_ERRORS as e:
            log.error("Failed to write markdown for %s: %s", path, e)
            return Failed(e)

    async def _apply(self, source: Path, session: ChatSession, force: bool) -> SyncOutcome:
        state = await self.tracker.get_state(session.session_id)
        synced = state.synced_message_count if state else 0
        total = len(session.messages)
        artifact = state.markdown_path if state else None

        if artifact is not None and not artifact.exists():
            log.info("Artifact %s is missing, rebuilding", artifact)
            return await self._rewrite(source, session, artifact)

        if synced > total:
            if not force:
                log.warning(
                    "%s records %d messages but %s has only %d",
                    artifact, synced, source.name, total,
                )
                return UpToDate()
            return await self._rewrite(source, session, artifact)

        if synced == total:
            return UpToDate()

        if synced == 0:
            return await self._rewrite(source, session, artifact)

        if artifact is None:
            raise InternalError(f"session {session.session_id} has a count but no artifact")
        delta = session.messages[synced:]
        # No suspension point between the write and the tracker update, so a
        # cancelled watcher never leaves a written but untracked delta
        append_messages(artifact, delta, session)
        await self.tracker.update(session.session_id, source, artifact, total)
        log.info("Appended %d message(s) to %s", len(delta), artifact.name)
        return Synced(new_messages=len(delta))

    async def _rewrite(self, source: Path, session: ChatSession, artifact: Path | None) -> SyncOutcome:
        target = artifact if artifact is not None else self._new_artifact_path(session)
        create_markdown_file(target, session)
        await self.tracker.update(session.session_id, source, target, len(session.messages))
        log.info("Wrote %d message(s) to %s", len(session.messages), target.name)
        return Synced(new_messages=len(session.messages))

    def _new_artifact_path(self, session: ChatSession) -> Path:
        """Path for a session's first artifact.

        Two sessions that start in the same second with the same opening
        line would share a name; the later one gets its id appended.
        """
        path = self.history_dir / markdown_filename(session)
        if not path.exists():
            return path
        try:
            header = parse_frontmatter(path)
        except OSError:
            header = None
        if header is not None and header.session_id == session.session_id:
            return path
        return path.with_name(f"{path.stem}-{session.session_id[:8]}{path.suffix}")
