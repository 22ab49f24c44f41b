"""Configuration schema dataclasses for waylog.

Defines the structure of configuration at all levels (user, project).
All fields are optional to support partial configs that merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MIN_POLL_INTERVAL = 0.1


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    file: str | None = None  # Log file path (default: .waylog/logs/waylog.log)


@dataclass
class WatchConfig:
    """Live transcript watching during `waylog run`.

    Example config.yaml:
        watch:
          poll_interval: 0.5
    """

    poll_interval: float = 1.0  # Seconds between checks of the latest session


@dataclass
class RunConfig:
    """Supervised child process settings."""

    terminate_timeout: float = 5.0  # Grace period after killing the child on a signal


@dataclass
class ProviderConfig:
    """Per-provider overrides.

    Example config.yaml:
        providers:
          codex:
            data_dir: /mnt/shared/codex
    """

    data_dir: str | None = None  # Replaces ~/.claude, ~/.gemini or ~/.codex


@dataclass
class Config:
    """Root configuration object.

    Aggregates all configuration sections. All fields use default factories
    to ensure partial configs work correctly with deep merging.
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    run: RunConfig = field(default_factory=RunConfig)
    providers: dict[str, ProviderConfig] = field(default_factory=dict)

    # Unknown top-level sections are preserved here
    extra: dict[str, Any] = field(default_factory=dict)

    def provider_data_dir(self, name: str) -> str | None:
        provider = self.providers.get(name)
        return provider.data_dir if provider else None
