"""Deployment status checks for ECS."""

from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    ProviderError,
    ResourceNotFoundError,
)
from opsagents.core.deployments.aws_ecs.models import ServiceInfo
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider


def get_service_status(
    provider: InfrastructureProvider,
    cluster_name: str,
    service_name: str,
) -> ServiceInfo:
    """Describe the service or fail when it does not exist.

    A missing cluster is reported the same way as a missing service.
    """
    try:
        service = provider.describe_service(cluster_name, service_name)
    except ResourceNotFoundError:
        service = None
    except ProviderError as exc:
        raise DeploymentError(f"Failed to describe service: {exc}", step="status") from exc
    if service is None:
        raise DeploymentError(
            f"Service {service_name} not found in cluster {cluster_name}",
            step="status",
        )
    return service


def format_service_status(service: ServiceInfo) -> str:
    """Render the service counts as plain text."""
    return (
        f"Service: {service.name}\n"
        f"Status: {service.status}\n"
        f"Running: {service.running_count}\n"
        f"Pending: {service.pending_count}\n"
        f"Desired: {service.desired_count}"
    )
