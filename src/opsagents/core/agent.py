"""OpsAgents conversation driver using pydantic-ai."""

import logging
from dataclasses import dataclass, field

from boto3.session import Session
from pydantic_ai.direct import model_request_sync
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.models.bedrock import BedrockConverseModel
from pydantic_ai.providers.bedrock import BedrockProvider
from pydantic_ai.settings import ModelSettings

from opsagents.core.prompts import SYSTEM_PROMPT
from opsagents.core.tools.catalog import ToolInvocation, ToolResult, tool_catalog
from opsagents.core.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "bedrock:anthropic.claude-3-sonnet-20240229-v1:0"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 4096
BEDROCK_PREFIX = "bedrock:"


@dataclass(frozen=True)
class AgentReply:
    """Text and tool results produced for one user message."""

    text: str
    tool_results: list[ToolResult] = field(default_factory=list)

    def render(self) -> str:
        """Combine the model text and tool results for display."""
        if not self.tool_results:
            return self.text
        results = "\n".join(f"- {result.content}" for result in self.tool_results)
        if self.text:
            return f"{self.text}\n\nTool Results:\n{results}"
        return f"Tool Results:\n{results}"


def create_model(model_name: str, session: Session | None = None) -> Model | str:
    """Return the model to query.

    Bedrock models reuse the given boto3 session so the agent shares the
    credentials resolved at start-up. Other names are passed to pydantic-ai
    unchanged.
    """
    if session is not None and model_name.startswith(BEDROCK_PREFIX):
        provider = BedrockProvider(bedrock_client=session.client("bedrock-runtime"))
        return BedrockConverseModel(model_name.removeprefix(BEDROCK_PREFIX), provider=provider)
    return model_name


class OpsAgent:
    """Send one user message to the model and run the tools it asks for.

    Tool results are returned to the caller directly; they are not fed back
    to the model for a follow-up answer.
    """

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        model: Model | str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        """Configure the agent."""
        self._dispatcher = dispatcher
        self._model = model
        self._settings = ModelSettings(temperature=temperature, max_tokens=max_tokens)
        self._system_prompt = system_prompt

    def send_message(self, text: str) -> AgentReply:
        """Query the model once and execute its tool calls in order."""
        response = self._request(text)

        texts: list[str] = []
        invocations: list[ToolInvocation] = []
        for part in response.parts:
            if isinstance(part, TextPart):
                texts.append(part.content)
            elif isinstance(part, ToolCallPart):
                invocations.append(
                    ToolInvocation(
                        id=part.tool_call_id,
                        name=part.tool_name,
                        arguments=part.args_as_dict(),
                    )
                )

        results = []
        for invocation in invocations:
            logger.info("Model requested tool %s", invocation.name)
            results.append(self._dispatcher.dispatch(invocation))

        return AgentReply(text="".join(texts), tool_results=results)

    def _request(self, text: str) -> ModelResponse:
        """Issue a single model request with the tool catalog attached."""
        messages = [
            ModelRequest(
                parts=[
                    SystemPromptPart(content=self._system_prompt),
                    UserPromptPart(content=text),
                ]
            )
        ]
        return model_request_sync(
            self._model,
            messages,
            model_settings=self._settings,
            model_request_parameters=ModelRequestParameters(function_tools=tool_catalog()),
        )
