"""Clean-up helpers for ECS deployment resources."""

import logging
import time
from collections.abc import Callable

from botocore.exceptions import BotoCoreError

from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    ProviderError,
    ResourceNotFoundError,
    WaitTimeoutError,
)
from opsagents.core.deployments.aws_ecs.models import CleanupReport, DeploymentSpec, SecretKind
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider

logger = logging.getLogger(__name__)

CLEANUP_WAIT_TIMEOUT_SECONDS = 5 * 60
LOAD_BALANCER_GRACE_SECONDS = 30
MOUNT_TARGET_GRACE_SECONDS = 30

Reporter = Callable[[str], None]
CleanupStep = Callable[[InfrastructureProvider, DeploymentSpec, Reporter], None]


def cleanup_stack(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> CleanupReport:
    """Remove the resources created for a deployment, best effort.

    Every step runs even when an earlier one failed. Missing resources count
    as already removed. Failures are collected on the returned report.
    """
    steps: list[tuple[str, CleanupStep]] = [
        ("service", _delete_service),
        ("task_definitions", _deregister_task_definitions),
        ("load_balancer", _delete_load_balancer_chain),
        ("cluster", _delete_cluster_if_empty),
        ("log_groups", _delete_log_groups),
    ]
    if spec.create_secrets:
        steps.append(("secrets", _delete_secrets))
    if spec.create_efs:
        steps.append(("efs", _delete_efs_volume))

    report = CleanupReport(service_name=spec.service_name)
    for name, step in steps:
        try:
            step(provider, spec, reporter)
        except (DeploymentError, BotoCoreError) as exc:
            logger.warning("Clean-up step %s failed: %s", name, exc)
            reporter(f"Warning: {name} clean-up failed: {exc}")
            report.record(name, str(exc))
        else:
            report.record(name)
    return report


def _delete_service(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Scale the service to zero, wait for it to drain and delete it."""
    reporter(f"Scaling service {spec.service_name} to zero")
    try:
        provider.update_service(spec.cluster_name, spec.service_name, desired_count=0)
    except ResourceNotFoundError:
        reporter(f"Service {spec.service_name} not found, skipping")
        return

    reporter("Waiting for tasks to stop")
    try:
        provider.wait_for_service_stable(
            spec.cluster_name,
            spec.service_name,
            CLEANUP_WAIT_TIMEOUT_SECONDS,
        )
    except WaitTimeoutError as exc:
        reporter(f"Warning: service did not stabilise, deleting anyway: {exc}")

    reporter(f"Deleting service {spec.service_name}")
    try:
        provider.delete_service(spec.cluster_name, spec.service_name)
    except ResourceNotFoundError:
        return


def _deregister_task_definitions(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Deregister every active revision of the task family."""
    reporter(f"Deregistering task definitions for {spec.task_family}")
    failed: list[str] = []
    for arn in provider.list_task_definitions(spec.task_family):
        try:
            provider.deregister_task_definition(arn)
        except ResourceNotFoundError:
            continue
        except ProviderError as exc:
            reporter(f"Failed to deregister task definition {arn}: {exc}")
            failed.append(arn)
    if failed:
        raise DeploymentError(
            f"Failed to deregister {len(failed)} task definition(s): {', '.join(failed)}",
            step="task_definitions",
        )


def _delete_load_balancer_chain(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Delete listeners, the load balancer and then the target group.

    A listener that cannot be deleted is reported and the chain carries on;
    such failures are raised once the target group has been handled.
    """
    failed_listeners: list[str] = []
    load_balancer = provider.describe_load_balancer(spec.load_balancer)
    if load_balancer:
        for listener in provider.list_listeners(load_balancer.arn):
            reporter(f"Deleting listener on port {listener.port}")
            try:
                provider.delete_listener(listener.arn)
            except ResourceNotFoundError:
                continue
            except ProviderError as exc:
                reporter(f"Warning: failed to delete listener {listener.arn}: {exc}")
                failed_listeners.append(listener.arn)

        reporter(f"Deleting load balancer {spec.load_balancer}")
        try:
            provider.delete_load_balancer(load_balancer.arn)
        except ResourceNotFoundError:
            pass
        else:
            reporter("Waiting for load balancer deletion")
            time.sleep(LOAD_BALANCER_GRACE_SECONDS)
    else:
        reporter(f"Load balancer {spec.load_balancer} not found, skipping")

    target_group = provider.describe_target_group(spec.target_group_name)
    if target_group:
        reporter(f"Deleting target group {spec.target_group_name}")
        try:
            provider.delete_target_group(target_group.arn)
        except ResourceNotFoundError:
            pass
    else:
        reporter(f"Target group {spec.target_group_name} not found, skipping")

    if failed_listeners:
        raise DeploymentError(
            f"Failed to delete {len(failed_listeners)} listener(s): {', '.join(failed_listeners)}",
            step="load_balancer",
        )


def _delete_cluster_if_empty(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Delete the cluster unless services or tasks still run in it."""
    try:
        services = provider.list_services(spec.cluster_name)
        tasks = provider.list_tasks(spec.cluster_name)
    except ResourceNotFoundError:
        reporter(f"Cluster {spec.cluster_name} not found, skipping")
        return

    if services or tasks:
        reporter(
            f"Keeping cluster {spec.cluster_name}: "
            f"{len(services)} service(s) and {len(tasks)} task(s) still running"
        )
        return

    reporter(f"Deleting cluster {spec.cluster_name}")
    try:
        provider.delete_cluster(spec.cluster_name)
    except ResourceNotFoundError:
        return


def _delete_log_groups(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Delete both container log groups."""
    failed: list[str] = []
    for log_group_name in (spec.webapp_log_group, spec.database_log_group):
        reporter(f"Deleting log group {log_group_name}")
        try:
            provider.delete_log_group(log_group_name)
        except ResourceNotFoundError:
            continue
        except ProviderError as exc:
            reporter(f"Failed to delete log group {log_group_name}: {exc}")
            failed.append(log_group_name)
    if failed:
        raise DeploymentError(
            f"Failed to delete log group(s): {', '.join(failed)}",
            step="log_groups",
        )


def _delete_secrets(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Force-delete every secret the deployment may have created."""
    failed: list[str] = []
    for kind in SecretKind:
        name = kind.secret_name(spec.service_name)
        reporter(f"Deleting secret {name}")
        try:
            provider.delete_secret(name, force=True)
        except ResourceNotFoundError:
            continue
        except ProviderError as exc:
            reporter(f"Failed to delete secret {name}: {exc}")
            failed.append(name)
    if failed:
        raise DeploymentError(
            f"Failed to delete secret(s): {', '.join(failed)}",
            step="secrets",
        )


def _delete_efs_volume(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Reporter,
) -> None:
    """Delete the mount targets and then the file system.

    Without a configured volume id the volume is looked up by the creation
    token used at deploy time.
    """
    file_system_id = spec.efs_volume_id or provider.find_file_system(spec.efs_creation_token)
    if not file_system_id:
        reporter(f"No EFS file system for {spec.efs_creation_token}, skipping")
        return
    try:
        mount_targets = provider.list_mount_targets(file_system_id)
    except ResourceNotFoundError:
        reporter(f"EFS file system {file_system_id} not found, skipping")
        return

    for mount_target_id in mount_targets:
        reporter(f"Deleting EFS mount target {mount_target_id}")
        try:
            provider.delete_mount_target(mount_target_id)
        except ResourceNotFoundError:
            continue
    if mount_targets:
        reporter("Waiting for mount targets to be deleted")
        time.sleep(MOUNT_TARGET_GRACE_SECONDS)

    reporter(f"Deleting EFS file system {file_system_id}")
    try:
        provider.delete_file_system(file_system_id)
    except ResourceNotFoundError:
        return
