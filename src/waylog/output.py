"""User-facing console output.

All messages go through rich consoles: progress to stdout, errors and
per-file failures to stderr. ``--output json`` turns every message into a
single JSON line ``{"level", "message", "timestamp"}`` on stdout.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.text import Text

from waylog.providers import list_providers


class Output:
    """Renders waylog's messages for humans or machines.

    Args:
        quiet: Suppress everything except errors and failures.
        json: Emit JSON lines instead of text.
        verbose: Show per-file pull results.
        stdout: Console for normal output (tests pass one writing to a buffer).
        stderr: Console for errors.
    """

    def __init__(
        self,
        quiet: bool = False,
        json: bool = False,
        verbose: bool = False,
        stdout: Console | None = None,
        stderr: Console | None = None,
    ) -> None:
        self.quiet = quiet
        self.json = json
        self.verbose = verbose
        self._stdout = stdout or Console(soft_wrap=True, highlight=False)
        self._stderr = stderr or Console(stderr=True, soft_wrap=True, highlight=False)

    # -- primitives ---------------------------------------------------------

    def _emit_json(self, level: str, message: str) -> None:
        record = {
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._stdout.print(json.dumps(record, ensure_ascii=False), markup=False, highlight=False)

    def _line(self, message: str, style: str = "", err: bool = False) -> None:
        console = self._stderr if err else self._stdout
        console.print(Text(message, style=style))

    def info(self, message: str) -> None:
        if self.quiet:
            return
        if self.json:
            self._emit_json("info", message)
        else:
            self._line(message)

    def error(self, message: str) -> None:
        if self.json:
            self._emit_json("error", message)
        else:
            self._line(f"✗ {message}", style="red", err=True)

    def _agent_list(self) -> None:
        for name in list_providers():
            self._line(f"- {name}", err=True)

    # -- run ----------------------------------------------------------------

    def missing_agent(self) -> None:
        self.error("Missing required argument <AGENT>")
        if self.json:
            return
        self._line("\nUsage: waylog run <AGENT> [ARGS]...\n", err=True)
        self._line("Available agents:", err=True)
        self._agent_list()
        self._line("\nExample:\n  waylog run claude", err=True)

    def unknown_agent(self, name: str) -> None:
        self.error(f"'{name}' is not a recognized agent.")
        if self.json:
            return
        self._line("\nAvailable agents:", err=True)
        self._agent_list()
        self._line("\nDid you mean to run 'waylog pull'?", err=True)

    def unknown_provider(self, name: str) -> None:
        self.error(f"'{name}' is not a recognized provider.")
        if self.json:
            return
        self._line("\nAvailable providers:", err=True)
        self._agent_list()

    def agent_not_installed(self, command: str) -> None:
        self.error(f"{command} is not installed or not in PATH")
        if not self.json:
            self._line("Please install it first before using waylog.", err=True)

    # -- project init -------------------------------------------------------

    def found_tracking(self, path: Path) -> None:
        if self.quiet:
            return
        if self.json:
            self._emit_json("found_tracking", str(path))
        else:
            self._line(f"Found existing tracking at: {path}")

    def not_initialized(self) -> None:
        self._line("Not initialized.")

    def init_prompt(self, path: Path) -> None:
        self._line("Start tracking AI chat history in this directory?")
        self._line(f"Path: {path}")

    def aborted(self) -> None:
        self._line("Aborted.")

    # -- pull ---------------------------------------------------------------

    def pull_start(self, project: Path) -> None:
        if self.quiet:
            return
        message = f"Pulling chat history for project: {project}"
        if self.json:
            self._emit_json("pull_start", message)
        else:
            self._line(message)

    def provider_header(self, provider: str, count: int) -> None:
        if self.quiet:
            return
        if self.json:
            self._emit_json("provider_header", f"{provider}: {count} sessions")
        else:
            self._line(f"\n[{provider}] Found {count} sessions", style="bold")

    def synced(self, filename: str, new_messages: int) -> None:
        if self.quiet or not self.verbose:
            return
        if self.json:
            self._emit_json("synced", f"{filename}: {new_messages} new messages")
        else:
            self._line(f"  ↑ Synced: {filename} ({new_messages} new messages)", style="cyan")

    def up_to_date(self, filename: str) -> None:
        if self.quiet or not self.verbose:
            return
        if self.json:
            self._emit_json("up_to_date", filename)
        else:
            self._line(f"  ✓ Up to date: {filename}", style="green")

    def skipped(self, filename: str) -> None:
        if self.quiet or not self.verbose:
            return
        if self.json:
            self._emit_json("skipped", filename)
        else:
            self._line(f"  ⊘ Skipped: {filename} (empty or invalid session)", style="dim")

    def failed(self, filename: str, error: str) -> None:
        if self.json:
            self._emit_json("failed", f"{filename}: {error}")
        else:
            self._line(f"  ✗ Failed to sync {filename}: {error}", style="red", err=True)

    def summary_compact(self, synced: int, up_to_date: int) -> None:
        if self.quiet or self.json:
            return
        if synced > 0:
            self._line(f"  ↑ {synced} sessions synced", style="cyan")
        if up_to_date > 0:
            self._line(f"  ✓ {up_to_date} sessions up to date", style="green")

    def summary(self, synced: int, up_to_date: int) -> None:
        if self.quiet:
            return
        if self.json:
            self._emit_json("summary", f"{synced} synced, {up_to_date} up to date")
        else:
            self._line(
                f"\n✨ Pull complete! {synced} sessions updated, {up_to_date} up to date."
            )
