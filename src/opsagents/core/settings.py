"""Runtime settings for OpsAgents read from the environment and the user .env file."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from opsagents.config.paths import env_path

ENV_FILE_PATH = str(env_path())


class AWSSettings(BaseSettings):
    """AWS credentials and region.

    Static keys take precedence over a named profile; with neither set the
    default boto3 credential chain is used.
    """

    model_config = SettingsConfigDict(env_prefix="AWS_", env_file=ENV_FILE_PATH, extra="ignore")

    region: str | None = Field(default=None, description="AWS region")
    default_region: str | None = Field(default=None, description="Fallback AWS region")
    profile: str | None = Field(default=None, description="Named AWS profile")
    access_key_id: str | None = Field(default=None, description="AWS Access Key ID")
    secret_access_key: str | None = Field(default=None, description="AWS Secret Access Key")
    session_token: str | None = Field(default=None, description="AWS Session Token")


class AgentSettings(BaseSettings):
    """Overrides for the conversational agent."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    model: str | None = Field(default=None, alias="OPSAGENTS_MODEL")
    log_level: str = Field(default="INFO", alias="OPSAGENTS_LOG_LEVEL")

    aws: AWSSettings


def get_settings() -> AgentSettings:
    """Load runtime settings from the environment.

    The AWS sub-config is populated by pydantic-settings from ``AWS_*``
    variables and the user ``.env`` file.
    """
    return AgentSettings(aws=AWSSettings())
