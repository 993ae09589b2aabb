"""CLI configuration models."""

from pydantic import BaseModel, ConfigDict, Field

from opsagents.core.agent import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from opsagents.core.deployments.aws_ecs.models import DeploymentSpec
from opsagents.core.deployments.aws_ecs.session import DEFAULT_REGION


class AwsConfig(BaseModel):
    """AWS configuration values for CLI deployment."""

    region: str = DEFAULT_REGION
    profile: str | None = None


class EcsConfig(BaseModel):
    """ECS configuration values for CLI deployment."""

    cluster_name: str = "opsagents-cluster"
    service_name: str = "opsagents-webapp"
    task_family: str = "opsagents-task"
    vpc_id: str = ""
    subnet_ids: list[str] = Field(default_factory=list)
    security_group_ids: list[str] = Field(default_factory=list)
    load_balancer_name: str = ""
    webapp_image: str = "opsagents/webapp:latest"
    database_image: str = "neo4j:5"
    webapp_port: int = 8000
    database_bolt_port: int = 7687
    database_http_port: int = 7474
    webapp_memory: int = 512
    webapp_cpu: int = 256
    database_memory: int = 1536
    database_cpu: int = 768
    environment: dict[str, str] = Field(default_factory=lambda: {"ENV": "production"})
    create_secrets: bool = False
    create_efs: bool = False
    efs_volume_id: str | None = None
    mode: str = "production"
    execution_role_name: str = "ecsTaskExecutionRole"
    health_check_path: str = "/health"

    def to_spec(self, service_name: str | None = None) -> DeploymentSpec:
        """Build the deployment spec, optionally for another service name."""
        return DeploymentSpec(
            cluster_name=self.cluster_name,
            service_name=service_name or self.service_name,
            task_family=self.task_family,
            webapp_image=self.webapp_image,
            database_image=self.database_image,
            vpc_id=self.vpc_id,
            subnet_ids=tuple(self.subnet_ids),
            security_group_ids=tuple(self.security_group_ids),
            load_balancer_name=self.load_balancer_name,
            webapp_port=self.webapp_port,
            database_bolt_port=self.database_bolt_port,
            database_http_port=self.database_http_port,
            webapp_memory=self.webapp_memory,
            webapp_cpu=self.webapp_cpu,
            database_memory=self.database_memory,
            database_cpu=self.database_cpu,
            environment=self.environment,
            create_secrets=self.create_secrets,
            create_efs=self.create_efs,
            efs_volume_id=self.efs_volume_id,
            mode=self.mode,
            execution_role_name=self.execution_role_name,
            health_check_path=self.health_check_path,
        )


class AgentConfig(BaseModel):
    """Chat model configuration values."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


class CliConfig(BaseModel):
    """CLI configuration."""

    model_config = ConfigDict(extra="ignore")

    aws: AwsConfig = Field(default_factory=AwsConfig)
    ecs: EcsConfig = Field(default_factory=EcsConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
