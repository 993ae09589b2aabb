"""Tests for CLI failure messages."""

from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from opsagents.cli.errors import (
    AUTH_HINT,
    ENDPOINT_HINT,
    NETWORK_HINT,
    WAIT_HINT,
    describe_failure,
)
from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    NetworkDiscoveryError,
    ProviderError,
    SecretCreationError,
    WaitTimeoutError,
)


def _wrapped(cause: BaseException) -> DeploymentError:
    wrapped = DeploymentError("Failed to create cluster", step="cluster")
    wrapped.__cause__ = cause
    return wrapped


def test_step_is_named_in_the_headline() -> None:
    headline, hint = describe_failure(
        DeploymentError("Failed to create service: boom", step="service"), "Deployment"
    )

    assert headline == "Deployment failed at step 'service': Failed to create service: boom"
    assert hint is None


def test_errors_without_a_step_keep_the_plain_headline() -> None:
    headline, _ = describe_failure(ProviderError("throttled"), "Status check")

    assert headline == "Status check failed: throttled"


def test_expired_credentials_deep_in_the_chain() -> None:
    cause = ClientError({"Error": {"Code": "ExpiredToken", "Message": "x"}}, "CreateCluster")

    headline, hint = describe_failure(_wrapped(cause), "Deployment")

    assert headline.startswith("AWS authentication failed")
    assert hint == AUTH_HINT


def test_missing_credentials() -> None:
    _, hint = describe_failure(_wrapped(NoCredentialsError()), "Deployment")

    assert hint == AUTH_HINT


def test_unreachable_endpoint() -> None:
    cause = EndpointConnectionError(endpoint_url="https://ecs.nowhere.amazonaws.com")

    headline, hint = describe_failure(_wrapped(cause), "Cleanup")

    assert headline == "Could not reach the AWS endpoint from this environment."
    assert hint == ENDPOINT_HINT


def test_wait_timeout_points_at_status() -> None:
    _, hint = describe_failure(WaitTimeoutError("still rolling"), "Deployment")

    assert hint == WAIT_HINT


def test_network_discovery_points_at_placement_settings() -> None:
    _, hint = describe_failure(NetworkDiscoveryError("no default VPC"), "Deployment")

    assert hint == NETWORK_HINT


def test_secret_failure_lists_what_was_left_behind() -> None:
    exc = SecretCreationError(
        "Failed to create secret s1-db-password",
        created={"s1-webapp-secret-key": "arn:1", "s1-admin-password": "arn:2"},
    )

    headline, hint = describe_failure(exc, "Deployment")

    assert headline.startswith("Deployment failed at step 'secrets'")
    assert hint == (
        "These secrets were created and left in place: s1-admin-password, s1-webapp-secret-key"
    )
