"""Run lifecycle: supervise the agent CLI and mirror its session.

The coordinator spawns the agent with the terminal handed straight through,
keeps a SessionWatcher polling in the background, and waits for whichever
comes first: the child exiting or SIGINT/SIGTERM. Every path ends with the
watcher stopped and one final sync of the newest transcript.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from waylog.config.schema import Config
from waylog.errors import EXIT_INTERRUPTED, EXIT_TERMINATED, AgentNotInstalledError
from waylog.logging import get_logger
from waylog.paths import ensure_dir_exists, get_history_dir
from waylog.providers.base import Provider
from waylog.session.tracker import SessionTracker
from waylog.sync.outcome import Failed, Synced
from waylog.sync.synchronizer import Synchronizer
from waylog.watcher import SessionWatcher

log = get_logger("run")

_HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class RunState(Enum):
    LAUNCHING = "launching"
    RUNNING = "running"
    TERMINATING = "terminating"
    FINALIZING = "finalizing"
    DONE = "done"


def child_exit_code(returncode: int | None) -> int:
    """Exit code to report for a child that exited on its own.

    A child killed by signal N (negative returncode) reports 128 + N, as a
    shell would.
    """
    if returncode is None:
        return 0
    if returncode < 0:
        return 128 - returncode
    return returncode


def signal_exit_code(signum: int) -> int:
    if signum == signal.SIGINT:
        return EXIT_INTERRUPTED
    if signum == signal.SIGTERM:
        return EXIT_TERMINATED
    return 128 + signum


async def terminate_child(process: asyncio.subprocess.Process, timeout: float) -> bool:
    """Kill the child and wait up to ``timeout`` seconds for it to exit.

    Returns:
        True if the child was observed to exit within the grace period.
    """
    if process.returncode is not None:
        return True

    with contextlib.suppress(ProcessLookupError):
        process.kill()

    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        log.warning("Child %d did not exit within %.1fs, continuing shutdown", process.pid, timeout)
        return False


class RunCoordinator:
    """Runs one supervised agent session from launch to final sync.

    Example:
        coordinator = RunCoordinator(provider, project_root, ["--resume"], config)
        exit_code = await coordinator.run()
    """

    def __init__(
        self,
        provider: Provider,
        project_root: Path,
        args: Sequence[str] = (),
        config: Config | None = None,
    ) -> None:
        self.provider = provider
        self.project_root = project_root
        self.args = list(args)
        self.config = config or Config()
        self.state = RunState.LAUNCHING
        self.received_signal: int | None = None
        self._signal_event = asyncio.Event()
        self._installed_signals: list[int] = []

    def handle_signal(self, signum: int) -> None:
        """Record a termination request. Only the first one counts.

        Once the final sync has started, further signals are logged and
        otherwise ignored so the sync can finish.
        """
        if self.state in (RunState.FINALIZING, RunState.DONE):
            log.info("Received signal %d during final sync, finishing first", signum)
            return
        if self.received_signal is None:
            self.received_signal = signum
            log.info("Received signal %d, stopping %s", signum, self.provider.name)
        self._signal_event.set()

    def _install_signal_handlers(self) -> bool:
        loop = asyncio.get_running_loop()
        try:
            for signum in _HANDLED_SIGNALS:
                loop.add_signal_handler(signum, self.handle_signal, signum)
                self._installed_signals.append(signum)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            log.warning("Signal handling unavailable (%s); waiting on the child only", e)
            self._remove_signal_handlers()
            return False
        return True

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in self._installed_signals:
            loop.remove_signal_handler(signum)
        self._installed_signals.clear()

    async def run(self) -> int:
        """Launch the agent, supervise it, and sync its session.

        Returns:
            The child's exit code, or 130/143 when interrupted/terminated.

        Raises:
            AgentNotInstalledError: If the agent is missing or cannot be spawned.
            OSError: If the history directory cannot be created.
        """
        if not self.provider.is_installed():
            raise AgentNotInstalledError(self.provider.command)

        history_dir = ensure_dir_exists(get_history_dir(self.project_root))
        tracker = await SessionTracker.restore(history_dir, self.provider.name)
        synchronizer = Synchronizer(self.provider, self.project_root, tracker)
        watcher = SessionWatcher(synchronizer, self.config.watch.poll_interval)

        watcher.start()
        argv = [self.provider.launch_command(), *self.args]
        log.info("Launching %s", " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(*argv)
        except OSError as e:
            await watcher.stop()
            log.error("Failed to start %s: %s", argv[0], e)
            raise AgentNotInstalledError(self.provider.command) from e

        self.state = RunState.RUNNING
        # Handlers stay in place until the final sync is written
        self._install_signal_handlers()
        try:
            exit_code = await self._supervise(process)
        finally:
            self.state = RunState.FINALIZING
            try:
                await watcher.stop()
                await self._final_sync(synchronizer)
                await tracker.save()
            finally:
                self._remove_signal_handlers()
            self.state = RunState.DONE

        log.info("%s finished with exit code %d", self.provider.name, exit_code)
        return exit_code

    async def _supervise(self, process: asyncio.subprocess.Process) -> int:
        child_exit = asyncio.create_task(process.wait())
        signalled = asyncio.create_task(self._signal_event.wait())
        try:
            done, _ = await asyncio.wait(
                {child_exit, signalled}, return_when=asyncio.FIRST_COMPLETED
            )
            if child_exit in done:
                return child_exit_code(process.returncode)

            self.state = RunState.TERMINATING
            await terminate_child(process, self.config.run.terminate_timeout)
            return signal_exit_code(self.received_signal or signal.SIGTERM)
        finally:
            for task in (child_exit, signalled):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

    async def _final_sync(self, synchronizer: Synchronizer) -> None:
        """Write whatever the watcher has not written yet. Never raises."""
        try:
            latest = await asyncio.get_running_loop().run_in_executor(
                None, self.provider.find_latest_session, self.project_root
            )
            if latest is None:
                log.info("No %s session found to sync", self.provider.name)
                return
            outcome = await synchronizer.sync_file(latest)
        except Exception as e:
            log.error("Final sync failed: %s", e)
            return

        if isinstance(outcome, Synced):
            log.info("Final sync wrote %d message(s) from %s", outcome.new_messages, latest.name)
        elif isinstance(outcome, Failed):
            log.error("Final sync of %s failed: %s", latest.name, outcome.error)
