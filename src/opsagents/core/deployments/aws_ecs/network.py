"""Default VPC discovery for ECS placement."""

import dataclasses
from collections.abc import Callable

from opsagents.core.deployments.aws_ecs.errors import NetworkDiscoveryError
from opsagents.core.deployments.aws_ecs.models import DeploymentSpec
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider


def resolve_network(
    provider: InfrastructureProvider,
    spec: DeploymentSpec,
    reporter: Callable[[str], None] | None = None,
) -> DeploymentSpec:
    """Fill in missing VPC, subnets and security group from account defaults.

    The spec is returned unchanged when both a VPC and subnets are configured.
    Otherwise the default VPC and all of its subnets replace the configured
    placement, and the VPC's default security group is used when none is set.
    """
    if not spec.needs_network_discovery:
        return spec

    if reporter:
        reporter("Discovering default VPC networking")

    vpc_id = provider.find_default_vpc()
    if not vpc_id:
        raise NetworkDiscoveryError("No default VPC found in this region.", step="network")

    subnet_ids = provider.list_subnets(vpc_id)
    if not subnet_ids:
        raise NetworkDiscoveryError(
            f"No subnets found in default VPC {vpc_id}.",
            step="network",
        )

    security_group_ids = spec.security_group_ids
    if not security_group_ids:
        default_group = provider.find_default_security_group(vpc_id)
        if default_group:
            security_group_ids = (default_group,)

    if reporter:
        reporter(f"Using VPC {vpc_id} with {len(subnet_ids)} subnet(s)")

    return dataclasses.replace(
        spec,
        vpc_id=vpc_id,
        subnet_ids=tuple(subnet_ids),
        security_group_ids=security_group_ids,
    )
