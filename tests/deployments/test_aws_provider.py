"""Tests for the boto3 provider against moto."""

from collections.abc import Iterator

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from moto import mock_aws

from opsagents.core.deployments.aws_ecs.aws_provider import (
    AwsInfrastructureProvider,
    aws_call,
    translate_client_error,
)
from opsagents.core.deployments.aws_ecs.errors import (
    ProviderError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from opsagents.core.deployments.aws_ecs.session import AwsCredentials

REGION = "us-east-1"


@pytest.fixture
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Point boto3 at fake credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def provider(aws_env: None) -> Iterator[AwsInfrastructureProvider]:
    """Yield a provider backed by moto."""
    with mock_aws():
        yield AwsInfrastructureProvider(boto3.session.Session(region_name=REGION))


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "Operation")


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("ResourceExistsException", ResourceAlreadyExistsError),
        ("DuplicateTargetGroupName", ResourceAlreadyExistsError),
        ("LoadBalancerNotFound", ResourceNotFoundError),
        ("ServiceNotFoundException", ResourceNotFoundError),
        ("ThrottlingException", ProviderError),
    ],
)
def test_client_errors_are_translated(code: str, expected: type[ProviderError]) -> None:
    error = translate_client_error(_client_error(code), "do something")

    assert type(error) is expected
    assert error.code == code
    assert str(error).startswith("Failed to do something")


def test_transport_errors_become_provider_errors() -> None:
    with pytest.raises(ProviderError, match="Failed to list services") as exc_info:
        with aws_call("list services"):
            raise EndpointConnectionError(endpoint_url="https://ecs.us-east-1.amazonaws.com")

    assert exc_info.value.code is None
    assert isinstance(exc_info.value.__cause__, EndpointConnectionError)


def test_from_credentials_uses_region(aws_env: None) -> None:
    with mock_aws():
        provider = AwsInfrastructureProvider.from_credentials(
            AwsCredentials(region="eu-west-2", access_key_id="a", secret_access_key="b")
        )

        assert provider.region == "eu-west-2"


def test_account_id(provider: AwsInfrastructureProvider) -> None:
    assert provider.account_id() == "123456789012"


def test_default_network_discovery(provider: AwsInfrastructureProvider) -> None:
    vpc_id = provider.find_default_vpc()

    assert vpc_id
    assert provider.list_subnets(vpc_id)
    assert provider.find_default_security_group(vpc_id)


def test_secret_lifecycle(provider: AwsInfrastructureProvider) -> None:
    arn = provider.create_secret("s1-db-password", "value", "Database password")

    assert arn.startswith("arn:aws:secretsmanager")
    with pytest.raises(ResourceAlreadyExistsError):
        provider.create_secret("s1-db-password", "other", "Database password")

    assert provider.find_secret("s1-db-password") == arn

    provider.delete_secret("s1-db-password", force=True)
    assert provider.find_secret("s1-db-password") is None


def test_log_group_duplicate_and_missing(provider: AwsInfrastructureProvider) -> None:
    provider.create_log_group("/ecs/t1-webapp")

    with pytest.raises(ResourceAlreadyExistsError):
        provider.create_log_group("/ecs/t1-webapp")

    provider.delete_log_group("/ecs/t1-webapp")
    with pytest.raises(ResourceNotFoundError):
        provider.delete_log_group("/ecs/t1-webapp")


def test_cluster_and_task_definitions(provider: AwsInfrastructureProvider) -> None:
    provider.create_cluster("c1")
    arn = provider.register_task_definition(
        {
            "family": "t1",
            "networkMode": "awsvpc",
            "requiresCompatibilities": ["FARGATE"],
            "cpu": "256",
            "memory": "512",
            "containerDefinitions": [
                {"name": "webapp", "image": "example/webapp:latest", "essential": True}
            ],
        }
    )

    assert arn in provider.list_task_definitions("t1")
    assert provider.describe_service("c1", "s1") is None
    assert provider.list_services("c1") == []

    provider.deregister_task_definition(arn)


def test_load_balancer_chain(provider: AwsInfrastructureProvider) -> None:
    vpc_id = provider.find_default_vpc() or ""
    subnet_ids = tuple(provider.list_subnets(vpc_id)[:2])

    assert provider.describe_load_balancer("s1-alb") is None
    assert provider.describe_target_group("s1-tg") is None

    load_balancer = provider.create_load_balancer("s1-alb", subnet_ids, ())
    target_group = provider.create_target_group("s1-tg", 8000, vpc_id, "/health")
    listener_arn = provider.create_listener(load_balancer.arn, target_group.arn, 80)

    described = provider.describe_load_balancer("s1-alb")
    assert described is not None
    assert described.arn == load_balancer.arn
    assert provider.describe_target_group("s1-tg") == target_group
    assert target_group.port == 8000

    listeners = provider.list_listeners(load_balancer.arn)
    assert [(item.arn, item.port, item.protocol) for item in listeners] == [
        (listener_arn, 80, "HTTP")
    ]
    provider.modify_listener(listener_arn, target_group.arn)

    provider.delete_listener(listener_arn)
    provider.delete_load_balancer(load_balancer.arn)
    provider.delete_target_group(target_group.arn)
    assert provider.describe_target_group("s1-tg") is None


def test_file_system(provider: AwsInfrastructureProvider) -> None:
    assert provider.find_file_system("s1-efs") is None
    file_system_id = provider.create_file_system("s1-efs", {"Name": "s1-neo4j-data"})

    assert provider.find_file_system("s1-efs") == file_system_id

    assert provider.describe_file_system_state(file_system_id) == "available"
    assert provider.list_mount_targets(file_system_id) == []

    provider.delete_file_system(file_system_id)
