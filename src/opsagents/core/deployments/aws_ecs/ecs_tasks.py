"""ECS task and cluster helpers."""

import logging
from collections.abc import Callable
from typing import Any

from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    ProviderError,
    ResourceAlreadyExistsError,
)
from opsagents.core.deployments.aws_ecs.models import (
    DATABASE_CONTAINER_NAME,
    DATABASE_SECRET_ENV,
    WEBAPP_CONTAINER_NAME,
    WEBAPP_SECRET_ENV,
    DeploymentSpec,
    SecretKind,
    SecretReferences,
)
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider

logger = logging.getLogger(__name__)

DATA_VOLUME_NAME = "neo4j-data"
DATA_MOUNT_PATH = "/data"
LOG_STREAM_PREFIX = "ecs"


def ensure_cluster(
    provider: InfrastructureProvider,
    cluster_name: str,
    reporter: Callable[[str], None],
) -> None:
    """Ensure an ECS cluster exists, treating an existing one as success."""
    reporter(f"Ensuring ECS cluster {cluster_name}")
    try:
        provider.create_cluster(cluster_name)
    except ResourceAlreadyExistsError:
        logger.debug("Cluster %s already exists", cluster_name)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to create cluster: {exc}", step="cluster") from exc


def ensure_log_groups(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
) -> None:
    """Ensure both container log groups exist."""
    for log_group_name in (spec.webapp_log_group, spec.database_log_group):
        reporter(f"Ensuring CloudWatch log group {log_group_name}")
        try:
            provider.create_log_group(log_group_name)
        except ResourceAlreadyExistsError:
            continue
        except ProviderError as exc:
            raise DeploymentError(
                f"Failed to create log group {log_group_name}: {exc}",
                step="task_definition",
            ) from exc


def build_task_definition(
    spec: DeploymentSpec,
    account_id: str,
    region: str,
    secret_references: SecretReferences | None = None,
) -> dict[str, Any]:
    """Build the ``register_task_definition`` request for the two-container task.

    Without the advanced features the database runs with authentication
    disabled. With them, the web application receives ``MODE`` and every
    created secret is wired into the containers that consume it.
    """
    references = secret_references or {}

    webapp_environment = dict(spec.environment)
    database_environment: dict[str, str] = {}
    if spec.uses_advanced_path:
        webapp_environment["MODE"] = spec.mode
    if SecretKind.DB_PASSWORD not in references:
        database_environment["NEO4J_AUTH"] = "none"

    webapp: dict[str, Any] = {
        "name": WEBAPP_CONTAINER_NAME,
        "image": spec.webapp_image,
        "essential": True,
        "cpu": spec.webapp_cpu,
        "memory": spec.webapp_memory,
        "portMappings": [{"containerPort": spec.webapp_port, "protocol": "tcp"}],
        "environment": _environment_entries(webapp_environment),
        "logConfiguration": _log_configuration(spec.webapp_log_group, region),
    }
    database: dict[str, Any] = {
        "name": DATABASE_CONTAINER_NAME,
        "image": spec.database_image,
        "essential": False,
        "cpu": spec.database_cpu,
        "memory": spec.database_memory,
        "portMappings": [
            {"containerPort": spec.database_http_port, "protocol": "tcp"},
            {"containerPort": spec.database_bolt_port, "protocol": "tcp"},
        ],
        "environment": _environment_entries(database_environment),
        "logConfiguration": _log_configuration(spec.database_log_group, region),
    }

    webapp_secrets = _secret_entries(WEBAPP_SECRET_ENV, references)
    if webapp_secrets:
        webapp["secrets"] = webapp_secrets
    database_secrets = _secret_entries(DATABASE_SECRET_ENV, references)
    if database_secrets:
        database["secrets"] = database_secrets

    definition: dict[str, Any] = {
        "family": spec.task_family,
        "networkMode": "awsvpc",
        "requiresCompatibilities": ["FARGATE"],
        "cpu": str(spec.task_cpu),
        "memory": str(spec.task_memory),
        "executionRoleArn": f"arn:aws:iam::{account_id}:role/{spec.execution_role_name}",
        "containerDefinitions": [webapp, database],
    }

    if spec.create_efs and spec.efs_volume_id:
        database["mountPoints"] = [
            {
                "sourceVolume": DATA_VOLUME_NAME,
                "containerPath": DATA_MOUNT_PATH,
                "readOnly": False,
            }
        ]
        definition["volumes"] = [
            {
                "name": DATA_VOLUME_NAME,
                "efsVolumeConfiguration": {
                    "fileSystemId": spec.efs_volume_id,
                    "rootDirectory": "/",
                    "transitEncryption": "ENABLED",
                },
            }
        ]

    return definition


def register_task_definition(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
    secret_references: SecretReferences | None = None,
) -> str:
    """Create the log groups and register a new task definition revision."""
    ensure_log_groups(provider, spec, reporter)

    try:
        account_id = provider.account_id()
    except ProviderError as exc:
        raise DeploymentError(
            f"Failed to resolve AWS account: {exc}", step="task_definition"
        ) from exc

    definition = build_task_definition(spec, account_id, provider.region, secret_references)
    reporter(f"Registering task definition {spec.task_family}")
    try:
        return provider.register_task_definition(definition)
    except ProviderError as exc:
        raise DeploymentError(
            f"Failed to register task definition: {exc}",
            step="task_definition",
        ) from exc


def _environment_entries(environment: dict[str, str]) -> list[dict[str, str]]:
    """Convert a mapping into ECS name/value pairs, sorted by name."""
    return [{"name": name, "value": value} for name, value in sorted(environment.items())]


def _secret_entries(
    mapping: dict[SecretKind, str],
    references: SecretReferences,
) -> list[dict[str, str]]:
    """Return ECS secret entries for the secrets that were created."""
    return [
        {"name": env_name, "valueFrom": references[kind]}
        for kind, env_name in mapping.items()
        if kind in references
    ]


def _log_configuration(log_group_name: str, region: str) -> dict[str, Any]:
    """Return an awslogs configuration for a container."""
    return {
        "logDriver": "awslogs",
        "options": {
            "awslogs-group": log_group_name,
            "awslogs-region": region,
            "awslogs-stream-prefix": LOG_STREAM_PREFIX,
        },
    }
