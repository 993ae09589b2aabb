"""Route model tool calls to the deployment operations."""

import dataclasses
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import assert_never

from botocore.exceptions import BotoCoreError
from pydantic import ValidationError

from opsagents.core.deployments.aws_ecs.cleanup import cleanup_stack
from opsagents.core.deployments.aws_ecs.deploy import deploy_stack
from opsagents.core.deployments.aws_ecs.models import DeploymentSpec
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider
from opsagents.core.deployments.aws_ecs.status import format_service_status, get_service_status
from opsagents.core.tools.catalog import (
    CleanupArguments,
    DeployArguments,
    StatusArguments,
    ToolInvocation,
    ToolName,
    ToolResult,
)

logger = logging.getLogger(__name__)

CLEANUP_CANCELLED_MESSAGE = (
    "Cleanup cancelled. The 'confirm' parameter must be set to true to proceed "
    "with resource deletion."
)


class ToolHandlers(ABC):
    """Implementations of the three tool operations."""

    @abstractmethod
    def deploy(self, arguments: DeployArguments) -> str:
        """Deploy the stack and describe the result."""

    @abstractmethod
    def status(self, arguments: StatusArguments) -> str:
        """Describe a service."""

    @abstractmethod
    def cleanup(self, arguments: CleanupArguments) -> str:
        """Remove the stack and describe what happened."""


class ToolDispatcher:
    """Validate tool arguments and run the matching handler."""

    def __init__(self, handlers: ToolHandlers) -> None:
        """Store the handlers used for every dispatch."""
        self._handlers = handlers

    def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        """Run one tool call and wrap its outcome.

        Failures are returned as error results rather than raised, so the
        conversation can report them.
        """
        try:
            name = ToolName(invocation.name)
        except ValueError:
            return ToolResult(
                tool_use_id=invocation.id,
                content=f"Unknown tool: {invocation.name}",
                is_error=True,
            )

        logger.info("Executing %s tool", name.value)
        try:
            content = self._run(name, invocation.arguments)
        except ValidationError as exc:
            return ToolResult(
                tool_use_id=invocation.id,
                content=f"Invalid arguments for {name.value}: {_describe_validation(exc)}",
                is_error=True,
            )
        except (RuntimeError, BotoCoreError) as exc:
            logger.warning("Tool %s failed: %s", name.value, exc)
            return ToolResult(
                tool_use_id=invocation.id,
                content=f"{name.value} failed: {exc}",
                is_error=True,
            )
        return ToolResult(tool_use_id=invocation.id, content=content)

    def _run(self, name: ToolName, arguments: Mapping[str, object]) -> str:
        """Parse the arguments for ``name`` and call its handler."""
        match name:
            case ToolName.DEPLOY:
                return self._handlers.deploy(DeployArguments.model_validate(arguments))
            case ToolName.STATUS:
                return self._handlers.status(StatusArguments.model_validate(arguments))
            case ToolName.CLEANUP:
                cleanup = CleanupArguments.model_validate(arguments)
                if cleanup.confirm is not True:
                    return CLEANUP_CANCELLED_MESSAGE
                return self._handlers.cleanup(cleanup)
            case _:
                assert_never(name)


class OrchestratorToolHandlers(ToolHandlers):
    """Tool handlers backed by the ECS deployment workflow."""

    def __init__(
        self,
        provider_factory: Callable[[], InfrastructureProvider],
        spec: DeploymentSpec,
        reporter: Callable[[str], None] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Create handlers.

        Args:
            provider_factory: Builds the provider on first use.
            spec: Deployment defaults from the configuration.
            reporter: Receives progress lines. Defaults to the module logger.
            environ: Source of the optional pass-through secrets.
        """
        self._provider_factory = provider_factory
        self._provider: InfrastructureProvider | None = None
        self._spec = spec
        self._reporter = reporter or logger.info
        self._environ = environ

    def deploy(self, arguments: DeployArguments) -> str:
        """Deploy the stack, optionally to another service name."""
        spec = self._spec_for(arguments.service_name)
        result = deploy_stack(
            self._get_provider(),
            spec,
            self._reporter,
            wait=arguments.wait_for_ready,
            environ=self._environ,
        )
        return result.summary()

    def status(self, arguments: StatusArguments) -> str:
        """Return the status summary of a service in the configured cluster."""
        service = get_service_status(
            self._get_provider(),
            self._spec.cluster_name,
            arguments.service_name,
        )
        return format_service_status(service)

    def cleanup(self, arguments: CleanupArguments) -> str:
        """Clean up the stack, optionally for another service name."""
        spec = self._spec_for(arguments.service_name)
        report = cleanup_stack(self._get_provider(), spec, self._reporter)
        return report.summary()

    def _spec_for(self, service_name: str | None) -> DeploymentSpec:
        """Apply a service name override to the configured spec."""
        if not service_name:
            return self._spec
        return dataclasses.replace(self._spec, service_name=service_name)

    def _get_provider(self) -> InfrastructureProvider:
        """Create the provider once."""
        if self._provider is None:
            self._provider = self._provider_factory()
        return self._provider


def _describe_validation(exc: ValidationError) -> str:
    """Summarise validation errors as ``field: message`` pairs."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
        for error in exc.errors()
    )
