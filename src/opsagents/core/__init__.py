"""OpsAgents core modules."""

from opsagents.core.agent import AgentReply, OpsAgent, create_model
from opsagents.core.settings import AgentSettings, AWSSettings, get_settings

__all__ = [
    "AgentReply",
    "AgentSettings",
    "AWSSettings",
    "OpsAgent",
    "create_model",
    "get_settings",
]
