"""`waylog run <agent> [args...]`"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from waylog.config.schema import Config
from waylog.errors import AgentNotInstalledError, MissingAgentError
from waylog.logging import get_logger
from waylog.providers import Provider, canonical_name, get_provider
from waylog.runner import RunCoordinator

log = get_logger("run")


def configured_provider(name: str, config: Config) -> Provider:
    """Instantiate a provider with its configured data directory.

    Raises:
        ProviderNotFoundError: If the name is unknown.
    """
    canonical = canonical_name(name)
    return get_provider(canonical, data_dir=config.provider_data_dir(canonical))


def resolve_agent(agent: str | None, config: Config) -> Provider:
    """Validate the agent name before any project state is touched.

    Raises:
        MissingAgentError: If no agent was given.
        ProviderNotFoundError: If the agent is unknown.
        AgentNotInstalledError: If the agent's command is not on PATH.
    """
    if not agent:
        raise MissingAgentError()
    provider = configured_provider(agent, config)
    if not provider.is_installed():
        raise AgentNotInstalledError(provider.command)
    return provider


async def handle_run(
    provider: Provider,
    args: Sequence[str],
    project_root: Path,
    config: Config,
) -> int:
    """Supervise the agent in ``project_root`` and return its exit code."""
    log.info("Starting %s session in %s", provider.name, project_root)
    coordinator = RunCoordinator(provider, project_root, args, config)
    return await coordinator.run()
