"""Shared fixtures for the OpsAgents tests."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest

from opsagents.core.deployments.aws_ecs.errors import (
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from opsagents.core.deployments.aws_ecs.models import (
    DeploymentSpec,
    ListenerInfo,
    LoadBalancerInfo,
    ServiceInfo,
    ServiceRequest,
    TargetGroupInfo,
)
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider


@dataclass
class Call:
    """One recorded provider call."""

    name: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class FakeProvider(InfrastructureProvider):
    """In-memory provider that records every call in order.

    Set ``failures[method_name]`` to an exception to make that method raise.
    """

    def __init__(self) -> None:
        """Start with an account that has a default VPC and nothing else."""
        self.calls: list[Call] = []
        self.failures: dict[str, Exception] = {}
        self.clusters: set[str] = set()
        self.services: dict[tuple[str, str], ServiceInfo] = {}
        self.tasks: dict[str, list[str]] = {}
        self.log_groups: set[str] = set()
        self.task_definitions: dict[str, list[str]] = {}
        self.registered: list[dict[str, Any]] = []
        self.load_balancers: dict[str, LoadBalancerInfo] = {}
        self.target_groups: dict[str, TargetGroupInfo] = {}
        self.listeners: dict[str, list[ListenerInfo]] = {}
        self.secrets: dict[str, str] = {}
        self.file_systems: dict[str, str] = {}
        self.file_system_tokens: dict[str, str] = {}
        self.mount_targets: dict[str, list[str]] = {}
        self.default_vpc: str | None = "vpc-default"
        self.subnets: dict[str, list[str]] = {"vpc-default": ["subnet-a", "subnet-b"]}
        self.default_security_groups: dict[str, str] = {"vpc-default": "sg-default"}
        self.service_requests: list[ServiceRequest] = []

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append(Call(name, args, kwargs))
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def call_names(self) -> list[str]:
        """Return the recorded method names in call order."""
        return [call.name for call in self.calls]

    def calls_to(self, name: str) -> list[Call]:
        """Return the recorded calls of one method."""
        return [call for call in self.calls if call.name == name]

    @property
    def region(self) -> str:
        return "us-east-1"

    def account_id(self) -> str:
        self._record("account_id")
        return "123456789012"

    def create_cluster(self, name: str) -> str:
        self._record("create_cluster", name)
        self.clusters.add(name)
        return f"arn:aws:ecs:us-east-1:123456789012:cluster/{name}"

    def list_services(self, cluster_name: str) -> list[str]:
        self._record("list_services", cluster_name)
        if cluster_name not in self.clusters:
            raise ResourceNotFoundError("cluster not found", "ClusterNotFoundException")
        return [name for cluster, name in self.services if cluster == cluster_name]

    def list_tasks(self, cluster_name: str) -> list[str]:
        self._record("list_tasks", cluster_name)
        return list(self.tasks.get(cluster_name, []))

    def delete_cluster(self, name: str) -> None:
        self._record("delete_cluster", name)
        self.clusters.discard(name)

    def create_log_group(self, name: str) -> None:
        self._record("create_log_group", name)
        if name in self.log_groups:
            raise ResourceAlreadyExistsError("exists", "ResourceAlreadyExistsException")
        self.log_groups.add(name)

    def delete_log_group(self, name: str) -> None:
        self._record("delete_log_group", name)
        if name not in self.log_groups:
            raise ResourceNotFoundError("missing", "ResourceNotFoundException")
        self.log_groups.discard(name)

    def register_task_definition(self, definition: dict[str, Any]) -> str:
        self._record("register_task_definition", definition)
        family = definition["family"]
        revisions = self.task_definitions.setdefault(family, [])
        arn = f"arn:aws:ecs:us-east-1:123456789012:task-definition/{family}:{len(revisions) + 1}"
        revisions.append(arn)
        self.registered.append(definition)
        return arn

    def list_task_definitions(self, family: str) -> list[str]:
        self._record("list_task_definitions", family)
        return list(self.task_definitions.get(family, []))

    def deregister_task_definition(self, arn: str) -> None:
        self._record("deregister_task_definition", arn)
        for revisions in self.task_definitions.values():
            if arn in revisions:
                revisions.remove(arn)

    def describe_service(self, cluster_name: str, service_name: str) -> ServiceInfo | None:
        self._record("describe_service", cluster_name, service_name)
        return self.services.get((cluster_name, service_name))

    def create_service(self, request: ServiceRequest) -> str:
        self._record("create_service", request)
        self.service_requests.append(request)
        self.services[(request.cluster_name, request.service_name)] = ServiceInfo(
            name=request.service_name,
            status="ACTIVE",
            desired_count=request.desired_count,
            task_definition=request.task_definition,
        )
        return f"arn:aws:ecs:us-east-1:123456789012:service/{request.service_name}"

    def update_service(
        self,
        cluster_name: str,
        service_name: str,
        task_definition: str | None = None,
        desired_count: int | None = None,
    ) -> None:
        self._record(
            "update_service",
            cluster_name,
            service_name,
            task_definition=task_definition,
            desired_count=desired_count,
        )
        if (cluster_name, service_name) not in self.services:
            raise ResourceNotFoundError("service not found", "ServiceNotFoundException")

    def delete_service(self, cluster_name: str, service_name: str) -> None:
        self._record("delete_service", cluster_name, service_name)
        self.services.pop((cluster_name, service_name), None)

    def wait_for_service_stable(
        self,
        cluster_name: str,
        service_name: str,
        timeout_seconds: int,
    ) -> None:
        self._record("wait_for_service_stable", cluster_name, service_name, timeout_seconds)

    def describe_load_balancer(self, name: str) -> LoadBalancerInfo | None:
        self._record("describe_load_balancer", name)
        return self.load_balancers.get(name)

    def create_load_balancer(
        self,
        name: str,
        subnet_ids: tuple[str, ...],
        security_group_ids: tuple[str, ...],
    ) -> LoadBalancerInfo:
        self._record("create_load_balancer", name, subnet_ids, security_group_ids)
        info = LoadBalancerInfo(
            arn=f"arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/{name}",
            state="active",
            dns_name=f"{name}.us-east-1.elb.amazonaws.com",
        )
        self.load_balancers[name] = info
        return info

    def delete_load_balancer(self, arn: str) -> None:
        self._record("delete_load_balancer", arn)
        for name, info in list(self.load_balancers.items()):
            if info.arn == arn:
                del self.load_balancers[name]
        self.listeners.pop(arn, None)

    def describe_target_group(self, name: str) -> TargetGroupInfo | None:
        self._record("describe_target_group", name)
        return self.target_groups.get(name)

    def create_target_group(
        self,
        name: str,
        port: int,
        vpc_id: str,
        health_check_path: str,
    ) -> TargetGroupInfo:
        self._record("create_target_group", name, port, vpc_id, health_check_path)
        info = TargetGroupInfo(
            arn=f"arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/{name}",
            port=port,
            protocol="HTTP",
        )
        self.target_groups[name] = info
        return info

    def delete_target_group(self, arn: str) -> None:
        self._record("delete_target_group", arn)
        for name, info in list(self.target_groups.items()):
            if info.arn == arn:
                del self.target_groups[name]

    def list_listeners(self, load_balancer_arn: str) -> list[ListenerInfo]:
        self._record("list_listeners", load_balancer_arn)
        return list(self.listeners.get(load_balancer_arn, []))

    def create_listener(self, load_balancer_arn: str, target_group_arn: str, port: int) -> str:
        self._record("create_listener", load_balancer_arn, target_group_arn, port)
        arn = f"{load_balancer_arn}/listener/{port}"
        self.listeners.setdefault(load_balancer_arn, []).append(
            ListenerInfo(arn=arn, port=port, protocol="HTTP")
        )
        return arn

    def modify_listener(self, listener_arn: str, target_group_arn: str) -> None:
        self._record("modify_listener", listener_arn, target_group_arn)

    def delete_listener(self, arn: str) -> None:
        self._record("delete_listener", arn)
        for listeners in self.listeners.values():
            listeners[:] = [listener for listener in listeners if listener.arn != arn]

    def create_secret(self, name: str, value: str, description: str) -> str:
        self._record("create_secret", name, value, description)
        if name in self.secrets:
            raise ResourceAlreadyExistsError("exists", "ResourceExistsException")
        self.secrets[name] = value
        return f"arn:aws:secretsmanager:us-east-1:123456789012:secret:{name}"

    def find_secret(self, name: str) -> str | None:
        self._record("find_secret", name)
        if name not in self.secrets:
            return None
        return f"arn:aws:secretsmanager:us-east-1:123456789012:secret:{name}"

    def delete_secret(self, name: str, force: bool = True) -> None:
        self._record("delete_secret", name, force=force)
        if name not in self.secrets:
            raise ResourceNotFoundError("missing", "ResourceNotFoundException")
        del self.secrets[name]

    def create_file_system(self, creation_token: str, tags: dict[str, str]) -> str:
        self._record("create_file_system", creation_token, tags)
        if self.file_system_tokens.get(creation_token) in self.file_systems:
            raise ResourceAlreadyExistsError("exists", "FileSystemAlreadyExists")
        file_system_id = f"fs-{len(self.file_systems) + 1:04d}"
        self.file_systems[file_system_id] = "available"
        self.file_system_tokens[creation_token] = file_system_id
        return file_system_id

    def find_file_system(self, creation_token: str) -> str | None:
        self._record("find_file_system", creation_token)
        file_system_id = self.file_system_tokens.get(creation_token)
        if file_system_id not in self.file_systems:
            return None
        return file_system_id

    def describe_file_system_state(self, file_system_id: str) -> str | None:
        self._record("describe_file_system_state", file_system_id)
        return self.file_systems.get(file_system_id)

    def create_mount_target(
        self,
        file_system_id: str,
        subnet_id: str,
        security_group_ids: tuple[str, ...],
    ) -> str:
        self._record("create_mount_target", file_system_id, subnet_id, security_group_ids)
        mount_target_id = f"fsmt-{subnet_id}"
        self.mount_targets.setdefault(file_system_id, []).append(mount_target_id)
        return mount_target_id

    def list_mount_targets(self, file_system_id: str) -> list[str]:
        self._record("list_mount_targets", file_system_id)
        if file_system_id not in self.file_systems:
            raise ResourceNotFoundError("missing", "FileSystemNotFound")
        return list(self.mount_targets.get(file_system_id, []))

    def delete_mount_target(self, mount_target_id: str) -> None:
        self._record("delete_mount_target", mount_target_id)
        for targets in self.mount_targets.values():
            if mount_target_id in targets:
                targets.remove(mount_target_id)

    def delete_file_system(self, file_system_id: str) -> None:
        self._record("delete_file_system", file_system_id)
        self.file_systems.pop(file_system_id, None)

    def find_default_vpc(self) -> str | None:
        self._record("find_default_vpc")
        return self.default_vpc

    def list_subnets(self, vpc_id: str) -> list[str]:
        self._record("list_subnets", vpc_id)
        return list(self.subnets.get(vpc_id, []))

    def find_default_security_group(self, vpc_id: str) -> str | None:
        self._record("find_default_security_group", vpc_id)
        return self.default_security_groups.get(vpc_id)


class ProgressLog:
    """Reporter that keeps every progress line."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Return an empty in-memory provider."""
    return FakeProvider()


@pytest.fixture
def progress() -> ProgressLog:
    """Return a reporter that records progress lines."""
    return ProgressLog()


@pytest.fixture
def basic_spec() -> DeploymentSpec:
    """Return the spec used by the literal end-to-end scenario."""
    return DeploymentSpec(
        cluster_name="c1",
        service_name="s1",
        task_family="t1",
        webapp_image="example/webapp:latest",
        database_image="neo4j:5",
        vpc_id="vpc-1",
        subnet_ids=("subnet-1", "subnet-2"),
        security_group_ids=("sg-1",),
        webapp_port=8000,
        database_bolt_port=7687,
        database_http_port=7474,
    )


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> Iterator[list[float]]:
    """Skip fixed sleeps and record their durations."""
    sleeps: list[float] = []
    monkeypatch.setattr("time.sleep", sleeps.append)
    yield sleeps
