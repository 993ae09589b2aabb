"""AWS ECS deployment helpers."""

from opsagents.core.deployments.aws_ecs.aws_provider import AwsInfrastructureProvider
from opsagents.core.deployments.aws_ecs.cleanup import cleanup_stack
from opsagents.core.deployments.aws_ecs.deploy import deploy_stack
from opsagents.core.deployments.aws_ecs.ecs_tasks import (
    build_task_definition,
    ensure_cluster,
    register_task_definition,
)
from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    NetworkDiscoveryError,
    ProviderError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    SecretCreationError,
    WaitTimeoutError,
)
from opsagents.core.deployments.aws_ecs.models import (
    CleanupReport,
    DeploymentResult,
    DeploymentSpec,
    SecretKind,
    SecretReferences,
    ServiceInfo,
    StepOutcome,
)
from opsagents.core.deployments.aws_ecs.network import resolve_network
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider
from opsagents.core.deployments.aws_ecs.secrets import create_secrets, generate_secret_value
from opsagents.core.deployments.aws_ecs.session import (
    AwsCredentials,
    create_session,
    resolve_credentials,
)
from opsagents.core.deployments.aws_ecs.status import format_service_status, get_service_status

__all__ = [
    "AwsCredentials",
    "AwsInfrastructureProvider",
    "CleanupReport",
    "DeploymentError",
    "DeploymentResult",
    "DeploymentSpec",
    "InfrastructureProvider",
    "NetworkDiscoveryError",
    "ProviderError",
    "ResourceAlreadyExistsError",
    "ResourceNotFoundError",
    "SecretCreationError",
    "SecretKind",
    "SecretReferences",
    "ServiceInfo",
    "StepOutcome",
    "WaitTimeoutError",
    "build_task_definition",
    "cleanup_stack",
    "create_secrets",
    "create_session",
    "deploy_stack",
    "ensure_cluster",
    "format_service_status",
    "generate_secret_value",
    "get_service_status",
    "register_task_definition",
    "resolve_credentials",
    "resolve_network",
]
