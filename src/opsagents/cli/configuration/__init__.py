"""CLI configuration package."""

from opsagents.cli.configuration.models import AgentConfig, AwsConfig, CliConfig, EcsConfig
from opsagents.cli.configuration.store import (
    ConfigError,
    load_config,
    remember_efs_volume,
    save_config,
)

__all__ = [
    "AgentConfig",
    "AwsConfig",
    "CliConfig",
    "ConfigError",
    "EcsConfig",
    "load_config",
    "remember_efs_volume",
    "save_config",
]
