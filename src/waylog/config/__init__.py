"""Configuration management for waylog.

Provides hierarchical YAML-based configuration with:
- User-level config (~/.config/waylog/ or ~/.waylog/)
- Project-level config (<project>/.waylog/)
- Environment variable overrides (highest priority)

Example usage:
    from waylog.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.watch.poll_interval)
"""

from waylog.config.loader import dict_to_config, load_config
from waylog.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
)
from waylog.config.schema import (
    Config,
    LoggingConfig,
    ProviderConfig,
    RunConfig,
    WatchConfig,
)

__all__ = [
    "Config",
    "load_config",
    "dict_to_config",
    "LoggingConfig",
    "WatchConfig",
    "RunConfig",
    "ProviderConfig",
    "get_config_paths",
    "get_user_config_path",
    "get_project_config_path",
]
