"""Deployment entrypoint for ECS."""

import dataclasses
import logging
import os
from collections.abc import Callable, Mapping

from opsagents.core.deployments.aws_ecs.ecs_tasks import ensure_cluster, register_task_definition
from opsagents.core.deployments.aws_ecs.errors import DeploymentError, ProviderError
from opsagents.core.deployments.aws_ecs.load_balancer import (
    ensure_listener,
    ensure_load_balancer,
    ensure_target_group,
)
from opsagents.core.deployments.aws_ecs.models import (
    WEBAPP_CONTAINER_NAME,
    DeploymentResult,
    DeploymentSpec,
    SecretReferences,
    ServiceRequest,
)
from opsagents.core.deployments.aws_ecs.network import resolve_network
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider
from opsagents.core.deployments.aws_ecs.secrets import create_secrets
from opsagents.core.deployments.aws_ecs.storage import create_efs_volume

logger = logging.getLogger(__name__)

DEPLOY_WAIT_TIMEOUT_SECONDS = 10 * 60


def deploy_stack(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
    wait: bool = False,
    environ: Mapping[str, str] | None = None,
) -> DeploymentResult:
    """Deploy the web application and database stack to ECS.

    Args:
        provider: Backend used for every cloud call.
        spec: What to deploy and where.
        reporter: Receives one progress line per step.
        wait: Block until the service is stable, for at most ten minutes.
        environ: Source of the optional pass-through secrets. Defaults to the
            process environment.

    Returns:
        The deployment result.

    Raises:
        DeploymentError: When a step fails. ``WaitTimeoutError`` signals that
            the service was deployed but did not stabilise in time.
    """
    environ = os.environ if environ is None else environ

    ensure_cluster(provider, spec.cluster_name, reporter)

    secret_references: SecretReferences = {}
    if spec.uses_advanced_path:
        reporter("Using advanced deployment with secrets and storage")
        if spec.create_secrets:
            secret_references = create_secrets(provider, spec.service_name, environ, reporter)
        if spec.create_efs:
            spec = _ensure_efs_volume(provider, spec, reporter)

    task_definition_arn = register_task_definition(provider, spec, reporter, secret_references)

    updated_existing, load_balancer_dns = _ensure_service(
        provider,
        spec,
        task_definition_arn,
        reporter,
    )

    if wait:
        reporter(f"Waiting for service {spec.service_name} to become stable")
        provider.wait_for_service_stable(
            spec.cluster_name,
            spec.service_name,
            DEPLOY_WAIT_TIMEOUT_SECONDS,
        )
        reporter(f"Service {spec.service_name} is stable")

    result = DeploymentResult(
        service_name=spec.service_name,
        task_definition_arn=task_definition_arn,
        updated_existing=updated_existing,
        load_balancer_dns=load_balancer_dns,
        secret_references=secret_references,
        efs_volume_id=spec.efs_volume_id,
    )
    logger.info(result.summary())
    return result


def _ensure_efs_volume(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
) -> DeploymentSpec:
    """Return a spec carrying the database volume id."""
    if spec.efs_volume_id:
        reporter(f"Using existing EFS file system {spec.efs_volume_id}")
        return spec

    spec = resolve_network(provider, spec, reporter)
    volume_id = create_efs_volume(provider, spec, reporter)
    return dataclasses.replace(spec, efs_volume_id=volume_id)


def _ensure_service(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    task_definition_arn: str,
    reporter: Callable[[str], None],
) -> tuple[bool, str | None]:
    """Update the service in place or create it behind the load balancer.

    Returns:
        Whether an existing service was updated, and the load balancer DNS
        name when the load-balancing chain was set up.
    """
    try:
        existing = provider.describe_service(spec.cluster_name, spec.service_name)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to describe service: {exc}", step="service") from exc

    if existing and existing.is_active:
        reporter(f"Updating existing service {spec.service_name}")
        try:
            provider.update_service(
                spec.cluster_name,
                spec.service_name,
                task_definition=task_definition_arn,
            )
        except ProviderError as exc:
            raise DeploymentError(f"Failed to update service: {exc}", step="service") from exc
        return True, None

    spec = resolve_network(provider, spec, reporter)
    load_balancer = ensure_load_balancer(provider, spec, reporter)
    target_group = ensure_target_group(provider, spec, reporter)
    ensure_listener(provider, load_balancer.arn, target_group.arn, reporter)

    reporter(f"Creating service {spec.service_name}")
    request = ServiceRequest(
        cluster_name=spec.cluster_name,
        service_name=spec.service_name,
        task_definition=task_definition_arn,
        subnet_ids=spec.subnet_ids,
        security_group_ids=spec.security_group_ids,
        target_group_arn=target_group.arn,
        container_name=WEBAPP_CONTAINER_NAME,
        container_port=spec.webapp_port,
    )
    try:
        provider.create_service(request)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to create service: {exc}", step="service") from exc

    return False, load_balancer.dns_name or None
