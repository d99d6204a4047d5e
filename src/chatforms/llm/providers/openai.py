import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from ...errors import ExternalServiceError
from ...models import ToolInvocation, ToolSchema
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse

logger = logging.getLogger(__name__)


def _tool_to_openai_format(tool: ToolSchema) -> dict[str, Any]:
    """Convert a tool schema to a Chat Completions function tool."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


def _parse_tool_call(message: Any) -> ToolInvocation | None:
    """Extract the first tool call from a Chat Completions message.

    Raises:
        ExternalServiceError: If the arguments are not a JSON object
    """
    tool_calls = getattr(message, "tool_calls", None)
    if not tool_calls:
        return None

    function = tool_calls[0].function
    try:
        arguments = json.loads(function.arguments or "{}")
    except json.JSONDecodeError as e:
        raise ExternalServiceError(
            "llm", f"Undecodable arguments for tool '{function.name}'"
        ) from e

    if not isinstance(arguments, dict):
        raise ExternalServiceError(
            "llm", f"Arguments for tool '{function.name}' are not an object"
        )

    if len(tool_calls) > 1:
        logger.warning("Model requested %d tool calls; only the first is used", len(tool_calls))

    return ToolInvocation(name=function.name, arguments=arguments)


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message and tool schema format conversion
    - Tool call extraction from the response
    - Authentication mechanism
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        tools: list[ToolSchema] | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using OpenAI.

        Args:
            messages: Conversation history
            tools: Function tools offered with tool_choice="auto"
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content or a tool call
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
            "temperature": temperature,
            **kwargs
        }
        if tools:
            request_params["tools"] = [_tool_to_openai_format(t) for t in tools]
            request_params["tool_choice"] = "auto"
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        try:
            completion = await self._client.chat.completions.create(**request_params)
        except OpenAIError as e:
            raise ExternalServiceError(self.provider_name, str(e)) from e

        if not completion.choices:
            raise ExternalServiceError(self.provider_name, "Completion has no choices")

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        message = completion.choices[0].message
        return LLMResponse(
            content=message.content or "",
            model=completion.model,
            tool_call=_parse_tool_call(message),
            usage=usage
        )

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
