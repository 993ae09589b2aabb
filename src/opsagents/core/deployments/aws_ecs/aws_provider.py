"""boto3 implementation of the infrastructure provider."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, cast

from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from opsagents.core.deployments.aws_ecs.errors import (
    ProviderError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    WaitTimeoutError,
)
from opsagents.core.deployments.aws_ecs.models import (
    ListenerInfo,
    LoadBalancerInfo,
    ServiceInfo,
    ServiceRequest,
    TargetGroupInfo,
)
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider
from opsagents.core.deployments.aws_ecs.session import AwsCredentials, create_session

logger = logging.getLogger(__name__)

ALREADY_EXISTS_CODES = frozenset(
    {
        "ResourceAlreadyExistsException",
        "ResourceExistsException",
        "DuplicateLoadBalancerName",
        "DuplicateTargetGroupName",
        "DuplicateListener",
        "FileSystemAlreadyExists",
        "MountTargetConflict",
    }
)
NOT_FOUND_CODES = frozenset(
    {
        "ResourceNotFoundException",
        "ClusterNotFoundException",
        "ServiceNotFoundException",
        "ServiceNotActiveException",
        "LoadBalancerNotFound",
        "TargetGroupNotFound",
        "ListenerNotFound",
        "FileSystemNotFound",
        "MountTargetNotFound",
    }
)

SERVICE_WAIT_DELAY_SECONDS = 15
EFS_PROVISIONED_THROUGHPUT_MIBPS = 10.0


def error_code(exc: ClientError) -> str:
    """Return the AWS error code of a ClientError."""
    return str(exc.response.get("Error", {}).get("Code", ""))


def translate_client_error(exc: ClientError, action: str) -> ProviderError:
    """Map a botocore ClientError onto the provider error taxonomy."""
    code = error_code(exc)
    message = f"Failed to {action}: {exc}"
    if code in ALREADY_EXISTS_CODES:
        return ResourceAlreadyExistsError(message, code)
    if code in NOT_FOUND_CODES:
        return ResourceNotFoundError(message, code)
    return ProviderError(message, code)


@contextmanager
def aws_call(action: str) -> Iterator[None]:
    """Translate botocore errors raised inside the block.

    Transport failures such as connection or credential errors carry no AWS
    error code and become a plain ``ProviderError``.
    """
    try:
        yield
    except ClientError as exc:
        raise translate_client_error(exc, action) from exc
    except BotoCoreError as exc:
        raise ProviderError(f"Failed to {action}: {exc}") from exc


class AwsInfrastructureProvider(InfrastructureProvider):
    """Infrastructure provider backed by ECS, ELBv2, EC2, EFS, Logs and Secrets Manager."""

    def __init__(self, session: Session) -> None:
        """Create service clients from a single session."""
        self._session = session
        self._ecs: Any = session.client("ecs")
        self._elbv2: Any = session.client("elbv2")
        self._ec2: Any = session.client("ec2")
        self._efs: Any = session.client("efs")
        self._logs: Any = session.client("logs")
        self._secrets: Any = session.client("secretsmanager")
        self._sts: Any = session.client("sts")
        self._account_id: str | None = None

    @classmethod
    def from_credentials(cls, credentials: AwsCredentials) -> "AwsInfrastructureProvider":
        """Build a provider from resolved credentials."""
        return cls(create_session(credentials))

    @property
    def region(self) -> str:
        """Region of the underlying session."""
        return str(self._session.region_name)

    def account_id(self) -> str:
        """Return the caller's account id, fetched once."""
        if self._account_id is None:
            with aws_call("read AWS identity"):
                response = self._sts.get_caller_identity()
            self._account_id = cast(str, response["Account"])
        return self._account_id

    def create_cluster(self, name: str) -> str:
        """Create a Fargate-capable ECS cluster."""
        with aws_call(f"create ECS cluster {name}"):
            response = self._ecs.create_cluster(
                clusterName=name,
                capacityProviders=["FARGATE", "FARGATE_SPOT"],
                defaultCapacityProviderStrategy=[{"capacityProvider": "FARGATE", "weight": 1}],
            )
        return cast(str, response["cluster"]["clusterArn"])

    def list_services(self, cluster_name: str) -> list[str]:
        """List service ARNs in a cluster."""
        arns: list[str] = []
        with aws_call(f"list services in cluster {cluster_name}"):
            for page in self._ecs.get_paginator("list_services").paginate(cluster=cluster_name):
                arns.extend(page.get("serviceArns", []))
        return arns

    def list_tasks(self, cluster_name: str) -> list[str]:
        """List task ARNs in a cluster."""
        arns: list[str] = []
        with aws_call(f"list tasks in cluster {cluster_name}"):
            for page in self._ecs.get_paginator("list_tasks").paginate(cluster=cluster_name):
                arns.extend(page.get("taskArns", []))
        return arns

    def delete_cluster(self, name: str) -> None:
        """Delete an ECS cluster."""
        with aws_call(f"delete ECS cluster {name}"):
            self._ecs.delete_cluster(cluster=name)

    def create_log_group(self, name: str) -> None:
        """Create a CloudWatch log group."""
        with aws_call(f"create log group {name}"):
            self._logs.create_log_group(logGroupName=name)

    def delete_log_group(self, name: str) -> None:
        """Delete a CloudWatch log group."""
        with aws_call(f"delete log group {name}"):
            self._logs.delete_log_group(logGroupName=name)

    def register_task_definition(self, definition: dict[str, Any]) -> str:
        """Register an ECS task definition revision."""
        with aws_call(f"register task definition {definition.get('family')}"):
            response = self._ecs.register_task_definition(**definition)
        return cast(str, response["taskDefinition"]["taskDefinitionArn"])

    def list_task_definitions(self, family: str) -> list[str]:
        """List active revisions of a task definition family."""
        arns: list[str] = []
        with aws_call(f"list task definitions for {family}"):
            paginator = self._ecs.get_paginator("list_task_definitions")
            for page in paginator.paginate(familyPrefix=family, status="ACTIVE"):
                arns.extend(page.get("taskDefinitionArns", []))
        return arns

    def deregister_task_definition(self, arn: str) -> None:
        """Deregister a task definition revision."""
        with aws_call(f"deregister task definition {arn}"):
            self._ecs.deregister_task_definition(taskDefinition=arn)

    def describe_service(self, cluster_name: str, service_name: str) -> ServiceInfo | None:
        """Describe an ECS service."""
        try:
            with aws_call(f"describe service {service_name}"):
                response = self._ecs.describe_services(
                    cluster=cluster_name,
                    services=[service_name],
                )
        except ResourceNotFoundError:
            return None

        services = response.get("services", [])
        if not services:
            return None
        service = services[0]
        return ServiceInfo(
            name=str(service.get("serviceName", service_name)),
            status=str(service.get("status", "")),
            running_count=int(service.get("runningCount", 0)),
            pending_count=int(service.get("pendingCount", 0)),
            desired_count=int(service.get("desiredCount", 0)),
            task_definition=str(service.get("taskDefinition", "")),
        )

    def create_service(self, request: ServiceRequest) -> str:
        """Create a Fargate service behind a target group."""
        with aws_call(f"create ECS service {request.service_name}"):
            response = self._ecs.create_service(
                cluster=request.cluster_name,
                serviceName=request.service_name,
                taskDefinition=request.task_definition,
                desiredCount=request.desired_count,
                launchType="FARGATE",
                networkConfiguration={
                    "awsvpcConfiguration": {
                        "subnets": list(request.subnet_ids),
                        "securityGroups": list(request.security_group_ids),
                        "assignPublicIp": "ENABLED",
                    }
                },
                loadBalancers=[
                    {
                        "targetGroupArn": request.target_group_arn,
                        "containerName": request.container_name,
                        "containerPort": request.container_port,
                    }
                ],
            )
        return cast(str, response["service"]["serviceArn"])

    def update_service(
        self,
        cluster_name: str,
        service_name: str,
        task_definition: str | None = None,
        desired_count: int | None = None,
    ) -> None:
        """Update the task definition and/or desired count of a service."""
        request: dict[str, Any] = {"cluster": cluster_name, "service": service_name}
        if task_definition is not None:
            request["taskDefinition"] = task_definition
        if desired_count is not None:
            request["desiredCount"] = desired_count
        with aws_call(f"update ECS service {service_name}"):
            self._ecs.update_service(**request)

    def delete_service(self, cluster_name: str, service_name: str) -> None:
        """Delete an ECS service."""
        with aws_call(f"delete ECS service {service_name}"):
            self._ecs.delete_service(cluster=cluster_name, service=service_name)

    def wait_for_service_stable(
        self,
        cluster_name: str,
        service_name: str,
        timeout_seconds: int,
    ) -> None:
        """Poll until the service is stable, bounded by ``timeout_seconds``."""
        attempts = max(1, timeout_seconds // SERVICE_WAIT_DELAY_SECONDS)
        waiter = self._ecs.get_waiter("services_stable")
        try:
            waiter.wait(
                cluster=cluster_name,
                services=[service_name],
                WaiterConfig={"Delay": SERVICE_WAIT_DELAY_SECONDS, "MaxAttempts": attempts},
            )
        except WaiterError as exc:
            if "Max attempts exceeded" in str(exc):
                raise WaitTimeoutError(
                    f"Service {service_name} did not stabilise within {timeout_seconds} seconds"
                ) from exc
            raise ProviderError(f"Failed waiting for service {service_name}: {exc}") from exc
        except BotoCoreError as exc:
            raise ProviderError(f"Failed waiting for service {service_name}: {exc}") from exc

    def describe_load_balancer(self, name: str) -> LoadBalancerInfo | None:
        """Describe a load balancer by name."""
        try:
            with aws_call(f"describe load balancer {name}"):
                response = self._elbv2.describe_load_balancers(Names=[name])
        except ResourceNotFoundError:
            return None

        balancers = response.get("LoadBalancers", [])
        if not balancers:
            return None
        return _load_balancer_info(balancers[0])

    def create_load_balancer(
        self,
        name: str,
        subnet_ids: tuple[str, ...],
        security_group_ids: tuple[str, ...],
    ) -> LoadBalancerInfo:
        """Create an internet-facing application load balancer."""
        request: dict[str, Any] = {
            "Name": name,
            "Subnets": list(subnet_ids),
            "Scheme": "internet-facing",
            "Type": "application",
            "IpAddressType": "ipv4",
        }
        if security_group_ids:
            request["SecurityGroups"] = list(security_group_ids)
        with aws_call(f"create load balancer {name}"):
            response = self._elbv2.create_load_balancer(**request)
        return _load_balancer_info(response["LoadBalancers"][0])

    def delete_load_balancer(self, arn: str) -> None:
        """Delete a load balancer."""
        with aws_call(f"delete load balancer {arn}"):
            self._elbv2.delete_load_balancer(LoadBalancerArn=arn)

    def describe_target_group(self, name: str) -> TargetGroupInfo | None:
        """Describe a target group by name."""
        try:
            with aws_call(f"describe target group {name}"):
                response = self._elbv2.describe_target_groups(Names=[name])
        except ResourceNotFoundError:
            return None

        groups = response.get("TargetGroups", [])
        if not groups:
            return None
        return _target_group_info(groups[0])

    def create_target_group(
        self,
        name: str,
        port: int,
        vpc_id: str,
        health_check_path: str,
    ) -> TargetGroupInfo:
        """Create an HTTP target group for Fargate tasks."""
        with aws_call(f"create target group {name}"):
            response = self._elbv2.create_target_group(
                Name=name,
                Protocol="HTTP",
                Port=port,
                VpcId=vpc_id,
                TargetType="ip",
                HealthCheckProtocol="HTTP",
                HealthCheckPath=health_check_path,
                HealthCheckIntervalSeconds=30,
                HealthyThresholdCount=2,
                UnhealthyThresholdCount=3,
            )
        return _target_group_info(response["TargetGroups"][0])

    def delete_target_group(self, arn: str) -> None:
        """Delete a target group."""
        with aws_call(f"delete target group {arn}"):
            self._elbv2.delete_target_group(TargetGroupArn=arn)

    def list_listeners(self, load_balancer_arn: str) -> list[ListenerInfo]:
        """List listeners attached to a load balancer."""
        with aws_call("describe listeners"):
            response = self._elbv2.describe_listeners(LoadBalancerArn=load_balancer_arn)
        return [
            ListenerInfo(
                arn=str(listener["ListenerArn"]),
                port=int(listener.get("Port", 0)),
                protocol=str(listener.get("Protocol", "")),
            )
            for listener in response.get("Listeners", [])
        ]

    def create_listener(self, load_balancer_arn: str, target_group_arn: str, port: int) -> str:
        """Create an HTTP listener forwarding to a target group."""
        with aws_call(f"create listener on port {port}"):
            response = self._elbv2.create_listener(
                LoadBalancerArn=load_balancer_arn,
                Protocol="HTTP",
                Port=port,
                DefaultActions=[{"Type": "forward", "TargetGroupArn": target_group_arn}],
            )
        return cast(str, response["Listeners"][0]["ListenerArn"])

    def modify_listener(self, listener_arn: str, target_group_arn: str) -> None:
        """Forward a listener to a different target group."""
        with aws_call(f"modify listener {listener_arn}"):
            self._elbv2.modify_listener(
                ListenerArn=listener_arn,
                DefaultActions=[{"Type": "forward", "TargetGroupArn": target_group_arn}],
            )

    def delete_listener(self, arn: str) -> None:
        """Delete a listener."""
        with aws_call(f"delete listener {arn}"):
            self._elbv2.delete_listener(ListenerArn=arn)

    def create_secret(self, name: str, value: str, description: str) -> str:
        """Create a Secrets Manager secret."""
        with aws_call(f"create secret {name}"):
            response = self._secrets.create_secret(
                Name=name,
                SecretString=value,
                Description=description,
            )
        return cast(str, response["ARN"])

    def find_secret(self, name: str) -> str | None:
        """Return the ARN of an existing secret."""
        try:
            with aws_call(f"describe secret {name}"):
                response = self._secrets.describe_secret(SecretId=name)
        except ResourceNotFoundError:
            return None
        return cast(str, response["ARN"])

    def delete_secret(self, name: str, force: bool = True) -> None:
        """Delete a Secrets Manager secret."""
        with aws_call(f"delete secret {name}"):
            self._secrets.delete_secret(SecretId=name, ForceDeleteWithoutRecovery=force)

    def create_file_system(self, creation_token: str, tags: dict[str, str]) -> str:
        """Create an EFS file system with provisioned throughput."""
        with aws_call(f"create EFS file system {creation_token}"):
            response = self._efs.create_file_system(
                CreationToken=creation_token,
                PerformanceMode="generalPurpose",
                ThroughputMode="provisioned",
                ProvisionedThroughputInMibps=EFS_PROVISIONED_THROUGHPUT_MIBPS,
                Tags=[{"Key": key, "Value": value} for key, value in tags.items()],
            )
        return cast(str, response["FileSystemId"])

    def find_file_system(self, creation_token: str) -> str | None:
        """Return the id of the file system created with ``creation_token``."""
        with aws_call(f"describe EFS file system {creation_token}"):
            response = self._efs.describe_file_systems(CreationToken=creation_token)
        file_systems = response.get("FileSystems", [])
        if not file_systems:
            return None
        return str(file_systems[0]["FileSystemId"])

    def describe_file_system_state(self, file_system_id: str) -> str | None:
        """Return the EFS lifecycle state."""
        with aws_call(f"describe EFS file system {file_system_id}"):
            response = self._efs.describe_file_systems(FileSystemId=file_system_id)
        file_systems = response.get("FileSystems", [])
        if not file_systems:
            return None
        return str(file_systems[0].get("LifeCycleState", ""))

    def create_mount_target(
        self,
        file_system_id: str,
        subnet_id: str,
        security_group_ids: tuple[str, ...],
    ) -> str:
        """Create an EFS mount target in a subnet."""
        request: dict[str, Any] = {"FileSystemId": file_system_id, "SubnetId": subnet_id}
        if security_group_ids:
            request["SecurityGroups"] = list(security_group_ids)
        with aws_call(f"create mount target in {subnet_id}"):
            response = self._efs.create_mount_target(**request)
        return cast(str, response["MountTargetId"])

    def list_mount_targets(self, file_system_id: str) -> list[str]:
        """List EFS mount targets."""
        with aws_call(f"describe mount targets of {file_system_id}"):
            response = self._efs.describe_mount_targets(FileSystemId=file_system_id)
        return [str(target["MountTargetId"]) for target in response.get("MountTargets", [])]

    def delete_mount_target(self, mount_target_id: str) -> None:
        """Delete an EFS mount target."""
        with aws_call(f"delete mount target {mount_target_id}"):
            self._efs.delete_mount_target(MountTargetId=mount_target_id)

    def delete_file_system(self, file_system_id: str) -> None:
        """Delete an EFS file system."""
        with aws_call(f"delete EFS file system {file_system_id}"):
            self._efs.delete_file_system(FileSystemId=file_system_id)

    def find_default_vpc(self) -> str | None:
        """Return the default VPC id."""
        with aws_call("describe VPCs"):
            response = self._ec2.describe_vpcs(
                Filters=[{"Name": "is-default", "Values": ["true"]}]
            )
        vpcs = response.get("Vpcs", [])
        if not vpcs:
            return None
        return str(vpcs[0]["VpcId"])

    def list_subnets(self, vpc_id: str) -> list[str]:
        """List subnet ids in a VPC."""
        subnet_ids: list[str] = []
        with aws_call(f"describe subnets of {vpc_id}"):
            paginator = self._ec2.get_paginator("describe_subnets")
            for page in paginator.paginate(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}]):
                subnet_ids.extend(str(subnet["SubnetId"]) for subnet in page.get("Subnets", []))
        return subnet_ids

    def find_default_security_group(self, vpc_id: str) -> str | None:
        """Return the default security group of a VPC."""
        with aws_call(f"describe security groups of {vpc_id}"):
            response = self._ec2.describe_security_groups(
                Filters=[
                    {"Name": "vpc-id", "Values": [vpc_id]},
                    {"Name": "group-name", "Values": ["default"]},
                ]
            )
        groups = response.get("SecurityGroups", [])
        if not groups:
            return None
        return str(groups[0]["GroupId"])


def _load_balancer_info(balancer: dict[str, Any]) -> LoadBalancerInfo:
    """Convert an ELBv2 load balancer description."""
    return LoadBalancerInfo(
        arn=str(balancer["LoadBalancerArn"]),
        state=str(balancer.get("State", {}).get("Code", "")),
        dns_name=str(balancer.get("DNSName", "")),
    )


def _target_group_info(group: dict[str, Any]) -> TargetGroupInfo:
    """Convert an ELBv2 target group description."""
    return TargetGroupInfo(
        arn=str(group["TargetGroupArn"]),
        port=int(group.get("Port", 0)),
        protocol=str(group.get("Protocol", "")),
    )
