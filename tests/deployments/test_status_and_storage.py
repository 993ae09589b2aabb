"""Tests for service status and EFS volume creation."""

import pytest

from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    ProviderError,
    ResourceNotFoundError,
    WaitTimeoutError,
)
from opsagents.core.deployments.aws_ecs.models import DeploymentSpec, ServiceInfo
from opsagents.core.deployments.aws_ecs.status import format_service_status, get_service_status
from opsagents.core.deployments.aws_ecs.storage import (
    AVAILABILITY_MAX_ATTEMPTS,
    create_efs_volume,
)


def test_status_text() -> None:
    service = ServiceInfo(
        name="s1",
        status="ACTIVE",
        running_count=1,
        pending_count=0,
        desired_count=1,
    )

    assert format_service_status(service) == (
        "Service: s1\nStatus: ACTIVE\nRunning: 1\nPending: 0\nDesired: 1"
    )


def test_missing_service_is_an_error(fake_provider) -> None:
    with pytest.raises(DeploymentError, match="not found"):
        get_service_status(fake_provider, "c1", "s1")


def test_existing_service_is_returned(fake_provider) -> None:
    fake_provider.services[("c1", "s1")] = ServiceInfo(name="s1", status="ACTIVE", running_count=2)

    assert get_service_status(fake_provider, "c1", "s1").running_count == 2


def test_volume_is_tagged_and_mounted_in_every_subnet(
    fake_provider, progress, basic_spec: DeploymentSpec
) -> None:
    file_system_id = create_efs_volume(fake_provider, basic_spec, progress)

    create = fake_provider.calls_to("create_file_system")[0]
    assert create.args == ("s1-efs", {"Name": "s1-neo4j-data", "Service": "s1"})
    mounts = fake_provider.calls_to("create_mount_target")
    assert [call.args[1] for call in mounts] == ["subnet-1", "subnet-2"]
    assert all(call.args[0] == file_system_id for call in mounts)


def test_failed_mount_target_is_only_a_warning(
    fake_provider, progress, basic_spec: DeploymentSpec
) -> None:
    fake_provider.failures["create_mount_target"] = ProviderError("conflict", "MountTargetConflict")

    file_system_id = create_efs_volume(fake_provider, basic_spec, progress)

    assert file_system_id == "fs-0001"
    assert sum(message.startswith("Warning") for message in progress.messages) == 2


def test_volume_that_never_becomes_available_times_out(
    fake_provider, progress, basic_spec: DeploymentSpec, no_sleep
) -> None:
    fake_provider.describe_file_system_state = lambda file_system_id: "creating"

    with pytest.raises(WaitTimeoutError):
        create_efs_volume(fake_provider, basic_spec, progress)

    assert len(no_sleep) == AVAILABILITY_MAX_ATTEMPTS
    assert set(no_sleep) == {5}
    assert "create_mount_target" not in fake_provider.call_names()


def test_missing_cluster_reads_as_missing_service(fake_provider) -> None:
    fake_provider.failures["describe_service"] = ResourceNotFoundError(
        "cluster not found", "ClusterNotFoundException"
    )

    with pytest.raises(DeploymentError, match="Service s1 not found in cluster c1"):
        get_service_status(fake_provider, "c1", "s1")


def test_volume_from_an_earlier_deploy_is_reused(
    fake_provider, progress, basic_spec: DeploymentSpec
) -> None:
    first = create_efs_volume(fake_provider, basic_spec, progress)
    fake_provider.calls.clear()

    second = create_efs_volume(fake_provider, basic_spec, progress)

    assert second == first
    assert fake_provider.call_names() == [
        "find_file_system",
        "describe_file_system_state",
        "list_mount_targets",
    ]
