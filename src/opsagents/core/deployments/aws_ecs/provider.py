"""Abstract boundary over the cloud backend used by the deployment workflow.

The orchestrators only talk to this interface. Implementations translate
backend failures into the error types in ``errors``:

- ``ResourceAlreadyExistsError`` when a create call hits an existing name.
- ``ResourceNotFoundError`` when a named resource is absent.
- ``WaitTimeoutError`` when a bounded wait runs out.
- ``ProviderError`` for any other rejection.
"""

from abc import ABC, abstractmethod
from typing import Any

from opsagents.core.deployments.aws_ecs.models import (
    ListenerInfo,
    LoadBalancerInfo,
    ServiceInfo,
    ServiceRequest,
    TargetGroupInfo,
)


class InfrastructureProvider(ABC):
    """Compute, network, secrets, storage and log operations."""

    @property
    @abstractmethod
    def region(self) -> str:
        """Region the provider operates in."""

    @abstractmethod
    def account_id(self) -> str:
        """Return the account the credentials belong to."""

    # Cluster

    @abstractmethod
    def create_cluster(self, name: str) -> str:
        """Create a cluster and return its ARN."""

    @abstractmethod
    def list_services(self, cluster_name: str) -> list[str]:
        """Return service ARNs running in a cluster."""

    @abstractmethod
    def list_tasks(self, cluster_name: str) -> list[str]:
        """Return task ARNs running in a cluster."""

    @abstractmethod
    def delete_cluster(self, name: str) -> None:
        """Delete a cluster."""

    # Log sinks

    @abstractmethod
    def create_log_group(self, name: str) -> None:
        """Create a log group."""

    @abstractmethod
    def delete_log_group(self, name: str) -> None:
        """Delete a log group."""

    # Task specifications

    @abstractmethod
    def register_task_definition(self, definition: dict[str, Any]) -> str:
        """Register a task definition revision and return its ARN."""

    @abstractmethod
    def list_task_definitions(self, family: str) -> list[str]:
        """Return ARNs of every active revision in a family."""

    @abstractmethod
    def deregister_task_definition(self, arn: str) -> None:
        """Deregister one task definition revision."""

    # Services

    @abstractmethod
    def describe_service(self, cluster_name: str, service_name: str) -> ServiceInfo | None:
        """Describe a service, or return None when it does not exist."""

    @abstractmethod
    def create_service(self, request: ServiceRequest) -> str:
        """Create a service and return its ARN."""

    @abstractmethod
    def update_service(
        self,
        cluster_name: str,
        service_name: str,
        task_definition: str | None = None,
        desired_count: int | None = None,
    ) -> None:
        """Point a service at a new task definition and/or change its count."""

    @abstractmethod
    def delete_service(self, cluster_name: str, service_name: str) -> None:
        """Delete a service."""

    @abstractmethod
    def wait_for_service_stable(
        self,
        cluster_name: str,
        service_name: str,
        timeout_seconds: int,
    ) -> None:
        """Block until the service is stable or raise ``WaitTimeoutError``."""

    # Load-balancing chain

    @abstractmethod
    def describe_load_balancer(self, name: str) -> LoadBalancerInfo | None:
        """Describe a load balancer by name."""

    @abstractmethod
    def create_load_balancer(
        self,
        name: str,
        subnet_ids: tuple[str, ...],
        security_group_ids: tuple[str, ...],
    ) -> LoadBalancerInfo:
        """Create an internet-facing application load balancer."""

    @abstractmethod
    def delete_load_balancer(self, arn: str) -> None:
        """Delete a load balancer."""

    @abstractmethod
    def describe_target_group(self, name: str) -> TargetGroupInfo | None:
        """Describe a target group by name."""

    @abstractmethod
    def create_target_group(
        self,
        name: str,
        port: int,
        vpc_id: str,
        health_check_path: str,
    ) -> TargetGroupInfo:
        """Create an HTTP target group with IP targets."""

    @abstractmethod
    def delete_target_group(self, arn: str) -> None:
        """Delete a target group."""

    @abstractmethod
    def list_listeners(self, load_balancer_arn: str) -> list[ListenerInfo]:
        """Return the listeners attached to a load balancer."""

    @abstractmethod
    def create_listener(self, load_balancer_arn: str, target_group_arn: str, port: int) -> str:
        """Create an HTTP listener forwarding to a target group."""

    @abstractmethod
    def modify_listener(self, listener_arn: str, target_group_arn: str) -> None:
        """Forward an existing listener to a different target group."""

    @abstractmethod
    def delete_listener(self, arn: str) -> None:
        """Delete a listener."""

    # Secrets

    @abstractmethod
    def create_secret(self, name: str, value: str, description: str) -> str:
        """Store a secret and return its ARN."""

    @abstractmethod
    def find_secret(self, name: str) -> str | None:
        """Return the ARN of an existing secret, or None."""

    @abstractmethod
    def delete_secret(self, name: str, force: bool = True) -> None:
        """Delete a secret, optionally without a recovery window."""

    # Shared storage

    @abstractmethod
    def create_file_system(self, creation_token: str, tags: dict[str, str]) -> str:
        """Create a file system with provisioned throughput and return its id."""

    @abstractmethod
    def find_file_system(self, creation_token: str) -> str | None:
        """Return the id of the file system created with a token, or None."""

    @abstractmethod
    def describe_file_system_state(self, file_system_id: str) -> str | None:
        """Return the lifecycle state of a file system."""

    @abstractmethod
    def create_mount_target(
        self,
        file_system_id: str,
        subnet_id: str,
        security_group_ids: tuple[str, ...],
    ) -> str:
        """Create a mount target in a subnet and return its id."""

    @abstractmethod
    def list_mount_targets(self, file_system_id: str) -> list[str]:
        """Return mount target ids of a file system."""

    @abstractmethod
    def delete_mount_target(self, mount_target_id: str) -> None:
        """Delete a mount target."""

    @abstractmethod
    def delete_file_system(self, file_system_id: str) -> None:
        """Delete a file system."""

    # Network discovery

    @abstractmethod
    def find_default_vpc(self) -> str | None:
        """Return the default VPC id, if the account has one."""

    @abstractmethod
    def list_subnets(self, vpc_id: str) -> list[str]:
        """Return every subnet id in a VPC."""

    @abstractmethod
    def find_default_security_group(self, vpc_id: str) -> str | None:
        """Return the default security group id of a VPC, if any."""
