"""AWS session helpers."""

from dataclasses import dataclass

import boto3

from opsagents.core.settings import AWSSettings

DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class AwsCredentials:
    """Credentials resolved once at start-up and passed to the provider."""

    region: str
    profile: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None

    @property
    def uses_static_keys(self) -> bool:
        """Whether an explicit key pair is configured."""
        return bool(self.access_key_id and self.secret_access_key)


def resolve_credentials(
    settings: AWSSettings,
    configured_region: str | None = None,
    configured_profile: str | None = None,
) -> AwsCredentials:
    """Resolve credentials from environment settings and the CLI config.

    Environment values win over the saved configuration. The region falls back
    to ``AWS_DEFAULT_REGION`` and finally ``us-east-1``.
    """
    region = (
        settings.region or configured_region or settings.default_region or DEFAULT_REGION
    )
    return AwsCredentials(
        region=region,
        profile=settings.profile or configured_profile,
        access_key_id=settings.access_key_id,
        secret_access_key=settings.secret_access_key,
        session_token=settings.session_token,
    )


def create_session(credentials: AwsCredentials) -> boto3.session.Session:
    """Create a boto3 session."""
    if credentials.uses_static_keys:
        return boto3.session.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
            region_name=credentials.region,
        )
    if credentials.profile:
        return boto3.session.Session(
            profile_name=credentials.profile,
            region_name=credentials.region,
        )

    return boto3.session.Session(region_name=credentials.region)
