"""EFS volume helpers for the database container."""

import logging
import time
from collections.abc import Callable

from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    ProviderError,
    WaitTimeoutError,
)
from opsagents.core.deployments.aws_ecs.models import DeploymentSpec
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider

logger = logging.getLogger(__name__)

AVAILABILITY_POLL_SECONDS = 5
AVAILABILITY_MAX_ATTEMPTS = 60


def create_efs_volume(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None],
) -> str:
    """Create the database volume, wait for it and add mount targets.

    A volume left by an earlier deploy of the same service is found by its
    creation token and reused. Mount targets are only added to a volume that
    has none; a failed mount target is reported and skipped.
    """
    creation_token = spec.efs_creation_token
    tags = {"Name": f"{spec.service_name}-neo4j-data", "Service": spec.service_name}

    try:
        file_system_id = provider.find_file_system(creation_token)
        if file_system_id:
            reporter(f"Reusing EFS file system {file_system_id} ({creation_token})")
        else:
            reporter(f"Creating EFS file system {creation_token}")
            file_system_id = provider.create_file_system(creation_token, tags)
    except ProviderError as exc:
        raise DeploymentError(f"Failed to create EFS file system: {exc}", step="efs") from exc

    wait_for_file_system(provider, file_system_id, reporter)

    try:
        existing_mount_targets = provider.list_mount_targets(file_system_id)
    except ProviderError as exc:
        raise DeploymentError(
            f"Failed to list mount targets of {file_system_id}: {exc}",
            step="efs",
        ) from exc
    if existing_mount_targets:
        return file_system_id

    for subnet_id in spec.subnet_ids:
        reporter(f"Creating EFS mount target in {subnet_id}")
        try:
            provider.create_mount_target(file_system_id, subnet_id, spec.security_group_ids)
        except ProviderError as exc:
            reporter(f"Warning: failed to create mount target in {subnet_id}: {exc}")

    return file_system_id


def wait_for_file_system(
    provider: InfrastructureProvider,
    file_system_id: str,
    reporter: Callable[[str], None],
) -> None:
    """Poll until the file system is available."""
    reporter(f"Waiting for EFS file system {file_system_id} to become available")
    for _ in range(AVAILABILITY_MAX_ATTEMPTS):
        try:
            state = provider.describe_file_system_state(file_system_id)
        except ProviderError as exc:
            raise DeploymentError(
                f"Failed to describe EFS file system {file_system_id}: {exc}",
                step="efs",
            ) from exc
        if state == "available":
            return
        logger.debug("EFS file system %s is %s", file_system_id, state)
        time.sleep(AVAILABILITY_POLL_SECONDS)

    raise WaitTimeoutError(
        f"EFS file system {file_system_id} did not become available in time",
        step="efs",
    )
