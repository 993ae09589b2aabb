"""Tests for the conversation driver."""

import boto3
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, ToolCallPart
from pydantic_ai.models.bedrock import BedrockConverseModel
from pydantic_ai.models.function import AgentInfo, FunctionModel

from opsagents.core.agent import AgentReply, OpsAgent, create_model
from opsagents.core.tools.catalog import (
    CleanupArguments,
    DeployArguments,
    StatusArguments,
    ToolResult,
)
from opsagents.core.tools.dispatcher import (
    CLEANUP_CANCELLED_MESSAGE,
    ToolDispatcher,
    ToolHandlers,
)


class StaticHandlers(ToolHandlers):
    """Handlers with fixed answers that remember the call order."""

    def __init__(self) -> None:
        self.order: list[str] = []

    def deploy(self, arguments: DeployArguments) -> str:
        self.order.append("deploy")
        return "deployed"

    def status(self, arguments: StatusArguments) -> str:
        self.order.append("status")
        return f"Service: {arguments.service_name}"

    def cleanup(self, arguments: CleanupArguments) -> str:
        self.order.append("cleanup")
        return "cleaned"


def _model(*parts) -> tuple[FunctionModel, list[AgentInfo]]:
    """Return a model that always answers with ``parts`` and the infos it saw."""
    seen: list[AgentInfo] = []

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        seen.append(info)
        return ModelResponse(parts=list(parts))

    return FunctionModel(respond), seen


def test_text_only_reply() -> None:
    model, seen = _model(TextPart(content="Nothing to do."))
    agent = OpsAgent(ToolDispatcher(StaticHandlers()), model=model)

    reply = agent.send_message("hello")

    assert reply == AgentReply(text="Nothing to do.")
    assert reply.render() == "Nothing to do."
    assert {tool.name for tool in seen[0].function_tools} == {
        "deploy_application",
        "get_deployment_status",
        "cleanup_resources",
    }


def test_tool_calls_run_in_order() -> None:
    model, _ = _model(
        TextPart(content="Working on it."),
        ToolCallPart(tool_name="deploy_application", args={}, tool_call_id="call-1"),
        ToolCallPart(
            tool_name="get_deployment_status",
            args={"service_name": "s1"},
            tool_call_id="call-2",
        ),
    )
    handlers = StaticHandlers()
    agent = OpsAgent(ToolDispatcher(handlers), model=model)

    reply = agent.send_message("deploy and check")

    assert [result.tool_use_id for result in reply.tool_results] == ["call-1", "call-2"]
    assert handlers.order == ["deploy", "status"]
    assert reply.render() == (
        "Working on it.\n\nTool Results:\n- deployed\n- Service: s1"
    )


def test_json_string_arguments_are_parsed() -> None:
    model, _ = _model(
        ToolCallPart(
            tool_name="cleanup_resources",
            args='{"confirm": false}',
            tool_call_id="call-3",
        )
    )

    reply = OpsAgent(ToolDispatcher(StaticHandlers()), model=model).send_message("clean up")

    assert reply.tool_results == [
        ToolResult(tool_use_id="call-3", content=CLEANUP_CANCELLED_MESSAGE)
    ]
    assert reply.render() == f"Tool Results:\n- {CLEANUP_CANCELLED_MESSAGE}"


def test_unknown_tool_is_reported_not_raised() -> None:
    model, _ = _model(ToolCallPart(tool_name="format_disk", args={}, tool_call_id="call-4"))

    reply = OpsAgent(ToolDispatcher(StaticHandlers()), model=model).send_message("go")

    assert reply.tool_results[0].is_error
    assert reply.tool_results[0].content == "Unknown tool: format_disk"


def test_non_bedrock_model_names_pass_through() -> None:
    assert create_model("test") == "test"


def test_bedrock_model_reuses_session() -> None:
    session = boto3.session.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )

    model = create_model("bedrock:anthropic.claude-3-sonnet-20240229-v1:0", session)

    assert isinstance(model, BedrockConverseModel)
    assert model.model_name == "anthropic.claude-3-sonnet-20240229-v1:0"
