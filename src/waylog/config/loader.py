"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides
- Conversion from dict to typed Config dataclass

The resulting Config is built once by the CLI entry point and passed down
explicitly; nothing here caches it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from waylog.config.merge import SECTIONS, clean_layer, merge_configs, section
from waylog.config.paths import get_config_paths
from waylog.config.schema import (
    MIN_POLL_INTERVAL,
    Config,
    LoggingConfig,
    ProviderConfig,
    RunConfig,
    WatchConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("waylog.config")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Read one config layer.

    A missing file, unreadable file, invalid YAML or a top level that is not
    a mapping all yield an empty layer; the problem is logged, not raised.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        return {}
    return clean_layer(data, path)


def env_overrides() -> dict[str, Any]:
    """Build config dict from WAYLOG_* environment variables."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("WAYLOG_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    log_level = os.environ.get("WAYLOG_LOG_LEVEL")
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    poll = os.environ.get("WAYLOG_POLL_INTERVAL")
    if poll:
        try:
            overrides["watch"] = {"poll_interval": float(poll)}
        except ValueError:
            _log.warning("Ignoring invalid WAYLOG_POLL_INTERVAL=%r", poll)

    return overrides


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    logging_data = section(data, "logging")
    logging_config = LoggingConfig(
        level=logging_data.get("level"),
        file=logging_data.get("file"),
    )

    watch_data = section(data, "watch")
    poll_interval = _as_float(watch_data.get("poll_interval"), WatchConfig.poll_interval)
    watch = WatchConfig(poll_interval=max(poll_interval, MIN_POLL_INTERVAL))

    run_data = section(data, "run")
    run = RunConfig(
        terminate_timeout=max(
            _as_float(run_data.get("terminate_timeout"), RunConfig.terminate_timeout), 0.0
        ),
    )

    providers_data = section(data, "providers")
    providers: dict[str, ProviderConfig] = {}
    for name in providers_data:
        entry = section(providers_data, name, "providers")
        providers[str(name).lower()] = ProviderConfig(data_dir=entry.get("data_dir"))

    extra = {k: v for k, v in data.items() if k not in SECTIONS}

    return Config(
        logging=logging_config,
        watch=watch,
        run=run,
        providers=providers,
        extra=extra,
    )


def load_config(project_root: str | Path | None = None) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables (WAYLOG_LOG, WAYLOG_LOG_LEVEL, WAYLOG_POLL_INTERVAL)
    2. Project config (<project>/.waylog/config.yaml)
    3. User config (~/.config/waylog/config.yaml or ~/.waylog/config.yaml)

    Args:
        project_root: Project directory for project-level config.

    Returns:
        Merged Config object.
    """
    configs: list[dict[str, Any]] = []

    for path in get_config_paths(project_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    return dict_to_config(merge_configs(*configs))
