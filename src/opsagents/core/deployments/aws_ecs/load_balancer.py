"""Application load balancer helpers for ECS deployment."""

import logging
from collections.abc import Callable

from opsagents.core.deployments.aws_ecs.errors import DeploymentError, ProviderError
from opsagents.core.deployments.aws_ecs.models import (
    DeploymentSpec,
    LoadBalancerInfo,
    TargetGroupInfo,
)
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider

logger = logging.getLogger(__name__)

LISTENER_PORT = 80
LISTENER_PROTOCOL = "HTTP"


def ensure_load_balancer(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
) -> LoadBalancerInfo:
    """Reuse the named load balancer or create it."""
    name = spec.load_balancer
    try:
        existing = provider.describe_load_balancer(name)
        if existing:
            if not existing.is_active:
                reporter(
                    f"Load balancer {name} is in state '{existing.state}', reusing it anyway"
                )
            else:
                reporter(f"Reusing load balancer {name}")
            return existing

        reporter(f"Creating load balancer {name}")
        return provider.create_load_balancer(name, spec.subnet_ids, spec.security_group_ids)
    except ProviderError as exc:
        raise DeploymentError(
            f"Failed to ensure load balancer {name}: {exc}",
            step="load_balancer",
        ) from exc


def ensure_target_group(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
) -> TargetGroupInfo:
    """Reuse the named target group or create it.

    An existing group is reused as-is even when its port or protocol differ
    from the configuration.
    """
    name = spec.target_group_name
    try:
        existing = provider.describe_target_group(name)
        if existing:
            if existing.port != spec.webapp_port:
                logger.warning(
                    "Target group %s listens on port %s, configured port is %s",
                    name,
                    existing.port,
                    spec.webapp_port,
                )
            reporter(f"Reusing target group {name}")
            return existing

        reporter(f"Creating target group {name}")
        return provider.create_target_group(
            name,
            spec.webapp_port,
            spec.vpc_id,
            spec.health_check_path,
        )
    except ProviderError as exc:
        raise DeploymentError(
            f"Failed to ensure target group {name}: {exc}",
            step="target_group",
        ) from exc


def ensure_listener(
    provider: InfrastructureProvider,
    load_balancer_arn: str,
    target_group_arn: str,
    reporter: Callable[[str], None],
) -> None:
    """Point the HTTP:80 listener at the target group, creating it if needed."""
    try:
        listeners = provider.list_listeners(load_balancer_arn)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to list listeners: {exc}", step="listener") from exc

    for listener in listeners:
        if listener.port != LISTENER_PORT or listener.protocol != LISTENER_PROTOCOL:
            continue
        reporter(f"Updating listener on port {LISTENER_PORT}")
        try:
            provider.modify_listener(listener.arn, target_group_arn)
            return
        except ProviderError as exc:
            reporter(f"Warning: failed to modify listener, creating a new one: {exc}")
            break

    reporter(f"Creating listener on port {LISTENER_PORT}")
    try:
        provider.create_listener(load_balancer_arn, target_group_arn, LISTENER_PORT)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to create listener: {exc}", step="listener") from exc
