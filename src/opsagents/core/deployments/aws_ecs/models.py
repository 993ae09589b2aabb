"""Data models for ECS deployment."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

WEBAPP_CONTAINER_NAME = "webapp"
DATABASE_CONTAINER_NAME = "database"


@dataclass(frozen=True)
class DeploymentSpec:
    """Everything one deploy or clean-up invocation needs to know.

    Instances are never mutated; use ``dataclasses.replace`` to derive a
    resolved copy (discovered network, service override, new volume id).
    """

    cluster_name: str
    service_name: str
    task_family: str
    webapp_image: str
    database_image: str
    vpc_id: str = ""
    subnet_ids: tuple[str, ...] = ()
    security_group_ids: tuple[str, ...] = ()
    load_balancer_name: str = ""
    webapp_port: int = 8000
    database_bolt_port: int = 7687
    database_http_port: int = 7474
    webapp_memory: int = 512
    webapp_cpu: int = 256
    database_memory: int = 1536
    database_cpu: int = 768
    environment: Mapping[str, str] = field(default_factory=dict)
    create_secrets: bool = False
    create_efs: bool = False
    efs_volume_id: str | None = None
    mode: str = "production"
    execution_role_name: str = "ecsTaskExecutionRole"
    health_check_path: str = "/health"

    def __post_init__(self) -> None:
        """Freeze collection fields so the spec stays immutable."""
        object.__setattr__(self, "subnet_ids", tuple(self.subnet_ids))
        object.__setattr__(self, "security_group_ids", tuple(self.security_group_ids))
        object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))

    @property
    def load_balancer(self) -> str:
        """Name of the application load balancer."""
        return self.load_balancer_name or f"{self.service_name}-alb"

    @property
    def target_group_name(self) -> str:
        """Name of the target group."""
        return f"{self.service_name}-tg"

    @property
    def webapp_log_group(self) -> str:
        """CloudWatch log group for the web application container."""
        return f"/ecs/{self.task_family}-webapp"

    @property
    def database_log_group(self) -> str:
        """CloudWatch log group for the database container."""
        return f"/ecs/{self.task_family}-database"

    @property
    def efs_creation_token(self) -> str:
        """Idempotency token of the database file system."""
        return f"{self.service_name}-efs"

    @property
    def task_cpu(self) -> int:
        """Task-level CPU units, the sum of both containers."""
        return self.webapp_cpu + self.database_cpu

    @property
    def task_memory(self) -> int:
        """Task-level memory in MiB, the sum of both containers."""
        return self.webapp_memory + self.database_memory

    @property
    def uses_advanced_path(self) -> bool:
        """Whether secrets or shared storage are requested."""
        return self.create_secrets or self.create_efs

    @property
    def needs_network_discovery(self) -> bool:
        """Whether the VPC or subnets must be discovered from account defaults."""
        return not self.vpc_id or not self.subnet_ids


class SecretKind(Enum):
    """Secrets the deployment can register, keyed by their logical name."""

    DB_PASSWORD = ("db-password", 32, None, "Database password for Neo4j")
    JWT_SECRET = ("jwt-secret", 64, None, "JWT secret for authentication")
    SESSION_KEY = ("session-key", 32, None, "Session key for session management")
    ANTHROPIC_API_KEY = ("anthropic-key", 0, "ANTHROPIC_API_KEY", "Anthropic API key")
    GMAIL_USER = ("gmail-user", 0, "GMAIL_USER", "Gmail user for email integration")
    GMAIL_PASS = ("gmail-pass", 0, "GMAIL_PASS", "Gmail password for email integration")

    def __init__(
        self,
        suffix: str,
        length: int,
        source_env: str | None,
        description: str,
    ) -> None:
        """Unpack the member tuple into named attributes."""
        self.suffix = suffix
        self.length = length
        self.source_env = source_env
        self.description = description

    @property
    def is_generated(self) -> bool:
        """Whether the value is random rather than read from the environment."""
        return self.source_env is None

    def secret_name(self, prefix: str) -> str:
        """Return the Secrets Manager name for this secret."""
        return f"{prefix}-{self.suffix}"


# Container environment variables fed by each secret.
WEBAPP_SECRET_ENV: dict[SecretKind, str] = {
    SecretKind.DB_PASSWORD: "DB_ADMIN",
    SecretKind.JWT_SECRET: "JWT_SECRET",
    SecretKind.SESSION_KEY: "SESSION_KEY",
    SecretKind.ANTHROPIC_API_KEY: "ANTHROPIC_API_KEY",
    SecretKind.GMAIL_USER: "GMAIL_USER",
    SecretKind.GMAIL_PASS: "GMAIL_PASS",
}
DATABASE_SECRET_ENV: dict[SecretKind, str] = {
    SecretKind.DB_PASSWORD: "NEO4J_PASSWORD",
}

SecretReferences = dict[SecretKind, str]


@dataclass(frozen=True)
class ServiceInfo:
    """Subset of an ECS service description."""

    name: str
    status: str
    running_count: int = 0
    pending_count: int = 0
    desired_count: int = 0
    task_definition: str = ""

    @property
    def is_active(self) -> bool:
        """Whether ECS reports the service as ACTIVE."""
        return self.status.upper() == "ACTIVE"


@dataclass(frozen=True)
class LoadBalancerInfo:
    """Subset of an application load balancer description."""

    arn: str
    state: str
    dns_name: str = ""

    @property
    def is_active(self) -> bool:
        """Whether the load balancer is ready to serve traffic."""
        return self.state == "active"


@dataclass(frozen=True)
class TargetGroupInfo:
    """Subset of a target group description."""

    arn: str
    port: int
    protocol: str


@dataclass(frozen=True)
class ListenerInfo:
    """Subset of a load balancer listener description."""

    arn: str
    port: int
    protocol: str


@dataclass(frozen=True)
class ServiceRequest:
    """Arguments for creating the ECS service."""

    cluster_name: str
    service_name: str
    task_definition: str
    subnet_ids: tuple[str, ...]
    security_group_ids: tuple[str, ...]
    target_group_arn: str
    container_name: str
    container_port: int
    desired_count: int = 1


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a successful deployment."""

    service_name: str
    task_definition_arn: str
    updated_existing: bool
    load_balancer_dns: str | None = None
    secret_references: SecretReferences = field(default_factory=dict)
    efs_volume_id: str | None = None

    def summary(self) -> str:
        """Return a one-line description for users and tool results."""
        verb = "updated" if self.updated_existing else "deployed"
        message = f"ECS service '{self.service_name}' {verb} with {self.task_definition_arn}"
        if self.load_balancer_dns:
            message += f", reachable at http://{self.load_balancer_dns}"
        if self.efs_volume_id:
            message += f", database volume {self.efs_volume_id}"
        return message


@dataclass(frozen=True)
class StepOutcome:
    """Result of one clean-up step."""

    step: str
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the step finished without an error."""
        return self.error is None


@dataclass
class CleanupReport:
    """Accumulated clean-up outcomes, in execution order."""

    service_name: str
    outcomes: list[StepOutcome] = field(default_factory=list)

    def record(self, step: str, error: str | None = None) -> None:
        """Append the outcome of a step."""
        self.outcomes.append(StepOutcome(step=step, error=error))

    @property
    def steps(self) -> list[str]:
        """Names of the steps that ran."""
        return [outcome.step for outcome in self.outcomes]

    @property
    def failures(self) -> list[StepOutcome]:
        """Outcomes that carry an error."""
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def succeeded(self) -> bool:
        """Whether every step finished cleanly."""
        return not self.failures

    def summary(self) -> str:
        """Return a short description for users and tool results."""
        if self.succeeded:
            return f"Cleaned up all ECS resources for service '{self.service_name}'."
        failed = ", ".join(f"{item.step} ({item.error})" for item in self.failures)
        return f"Cleanup for service '{self.service_name}' finished with failures: {failed}"
