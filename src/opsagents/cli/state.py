"""CLI state shared between commands."""

from dataclasses import dataclass
from pathlib import Path

from opsagents.cli.configuration.models import CliConfig
from opsagents.cli.configuration.store import load_config
from opsagents.core.deployments.aws_ecs.session import AwsCredentials, resolve_credentials
from opsagents.core.settings import AgentSettings


@dataclass
class CliState:
    """Settings resolved once per invocation of the CLI."""

    config_path: Path
    settings: AgentSettings

    def load_config(self) -> CliConfig:
        """Load the configuration file, or defaults when it does not exist."""
        return load_config(self.config_path)

    def credentials(self, config: CliConfig) -> AwsCredentials:
        """Resolve AWS credentials from the environment and the configuration."""
        return resolve_credentials(
            self.settings.aws,
            configured_region=config.aws.region,
            configured_profile=config.aws.profile,
        )

    def model_name(self, config: CliConfig) -> str:
        """Return the chat model, letting ``OPSAGENTS_MODEL`` override the file."""
        return self.settings.model or config.agent.model
