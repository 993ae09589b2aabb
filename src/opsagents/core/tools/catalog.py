"""Tools exposed to the chat model and their typed arguments."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic_ai.tools import ToolDefinition


class ToolName(StrEnum):
    """Operations the chat model may request."""

    DEPLOY = "deploy_application"
    STATUS = "get_deployment_status"
    CLEANUP = "cleanup_resources"


class DeployArguments(BaseModel):
    """Arguments of ``deploy_application``."""

    model_config = ConfigDict(extra="ignore")

    service_name: str | None = Field(
        default=None,
        description="Name of the ECS service to deploy to",
    )
    wait_for_ready: bool = Field(
        default=True,
        description="Whether to wait for the service to become stable",
    )


class StatusArguments(BaseModel):
    """Arguments of ``get_deployment_status``."""

    model_config = ConfigDict(extra="ignore")

    service_name: str = Field(description="Name of the ECS service to check")


class CleanupArguments(BaseModel):
    """Arguments of ``cleanup_resources``.

    ``confirm`` is required in the published schema, but a missing value is
    accepted here and treated as a refusal. Only a JSON boolean is accepted;
    strings such as ``"yes"`` fail validation.
    """

    model_config = ConfigDict(extra="ignore", json_schema_extra={"required": ["confirm"]})

    confirm: StrictBool | None = Field(
        default=None,
        description="Set to true to confirm resource deletion",
    )
    service_name: str | None = Field(
        default=None,
        description="Optional service name to clean up specific resources",
    )


TOOL_ARGUMENTS: dict[ToolName, type[BaseModel]] = {
    ToolName.DEPLOY: DeployArguments,
    ToolName.STATUS: StatusArguments,
    ToolName.CLEANUP: CleanupArguments,
}

TOOL_DESCRIPTIONS: dict[ToolName, str] = {
    ToolName.DEPLOY: "Deploy the application containers to AWS ECS",
    ToolName.STATUS: "Get the current status of a deployed application",
    ToolName.CLEANUP: (
        "Clean up all AWS ECS resources including services, clusters, "
        "load balancers, and log groups"
    ),
}


def tool_catalog() -> list[ToolDefinition]:
    """Return the tool definitions sent to the model."""
    return [
        ToolDefinition(
            name=name.value,
            description=TOOL_DESCRIPTIONS[name],
            parameters_json_schema=TOOL_ARGUMENTS[name].model_json_schema(),
        )
        for name in ToolName
    ]


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """The outcome of one tool call."""

    tool_use_id: str
    content: str
    is_error: bool = False
