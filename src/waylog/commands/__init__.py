"""CLI command handlers."""

from waylog.commands.pull import handle_pull, select_providers
from waylog.commands.run import configured_provider, handle_run, resolve_agent

__all__ = ["configured_provider", "handle_pull", "handle_run", "resolve_agent", "select_providers"]
