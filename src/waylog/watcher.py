"""Live transcript watcher.

Polls the provider for the project's newest transcript and feeds it to the
synchronizer. Polling (rather than filesystem events) copes with tools that
rewrite their transcript files in place.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

from waylog.logging import get_logger
from waylog.sync.outcome import Failed, Synced
from waylog.sync.synchronizer import Synchronizer

log = get_logger("watcher")

# Default poll interval in seconds
DEFAULT_POLL_INTERVAL = 1.0


class SessionWatcher:
    """Keeps the newest session's artifact current while the agent runs.

    Holds no sync state of its own; everything it knows lives in the
    synchronizer's tracker, so stopping and restarting it is always safe.
    """

    def __init__(
        self,
        synchronizer: Synchronizer,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize the watcher.

        Args:
            synchronizer: Synchronizer for the provider being supervised.
            poll_interval: Seconds between polls.
        """
        self._synchronizer = synchronizer
        self._poll_interval = poll_interval
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def poll_once(self) -> None:
        """Sync the newest transcript, if there is one."""
        sync = self._synchronizer
        latest: Path | None = await asyncio.get_running_loop().run_in_executor(
            None, sync.provider.find_latest_session, sync.project_path
        )
        if latest is None:
            return

        outcome = await sync.sync_file(latest)
        if isinstance(outcome, Synced):
            log.debug("Watcher synced %d message(s) from %s", outcome.new_messages, latest.name)
        elif isinstance(outcome, Failed):
            # Usually a half-written record; the next poll sees the full line
            log.debug("Watcher could not sync %s: %s", latest.name, outcome.error)

    async def _poll_loop(self) -> None:
        """Main polling loop."""
        while self._running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning("Watcher poll failed: %s", e)

            await asyncio.sleep(self._poll_interval)

    def start(self) -> None:
        """Start polling in a background task.

        Must be called from within a running event loop.
        """
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop(), name="waylog-watcher")
        log.debug("Watcher started (interval=%.1fs)", self._poll_interval)

    async def stop(self) -> None:
        """Cancel the poll task and wait for it to finish."""
        self._running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        log.debug("Watcher stopped")

    async def __aenter__(self) -> SessionWatcher:
        """Async context manager entry."""
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.stop()
