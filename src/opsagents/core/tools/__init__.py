"""Tools the chat model can call."""

from opsagents.core.tools.catalog import (
    CleanupArguments,
    DeployArguments,
    StatusArguments,
    ToolInvocation,
    ToolName,
    ToolResult,
    tool_catalog,
)
from opsagents.core.tools.dispatcher import (
    CLEANUP_CANCELLED_MESSAGE,
    OrchestratorToolHandlers,
    ToolDispatcher,
    ToolHandlers,
)

__all__ = [
    "CLEANUP_CANCELLED_MESSAGE",
    "CleanupArguments",
    "DeployArguments",
    "OrchestratorToolHandlers",
    "StatusArguments",
    "ToolDispatcher",
    "ToolHandlers",
    "ToolInvocation",
    "ToolName",
    "ToolResult",
    "tool_catalog",
]
