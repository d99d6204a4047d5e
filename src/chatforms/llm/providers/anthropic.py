"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async chat completions.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from typing import Any

from anthropic import AnthropicError, AsyncAnthropic

from ...errors import ExternalServiceError
from ...models import ToolInvocation, ToolSchema
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse


def _tool_to_anthropic_format(tool: ToolSchema) -> dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "input_schema": tool.parameters,
    }


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Mapping tool_use content blocks to tool calls
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
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
        """Generate a chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            tools: Tools offered to the model
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            LLMResponse with generated content or a tool call
        """
        # Anthropic takes the system prompt as a separate parameter
        system_parts = []
        anthropic_messages = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                anthropic_messages.append({
                    "role": msg.role,
                    "content": msg.content
                })

        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": anthropic_messages,
            "temperature": temperature,
            "max_tokens": max_tokens or 4096,  # Anthropic requires max_tokens
            **kwargs
        }
        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)
        if tools:
            request_params["tools"] = [_tool_to_anthropic_format(t) for t in tools]

        try:
            response = await self._client.messages.create(**request_params)
        except AnthropicError as e:
            raise ExternalServiceError("anthropic", str(e)) from e

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        content = ""
        tool_call = None
        for block in response.content:
            if block.type == "text":
                content += block.text
            elif block.type == "tool_use" and tool_call is None:
                if not isinstance(block.input, dict):
                    raise ExternalServiceError(
                        "anthropic", f"Input for tool '{block.name}' is not an object"
                    )
                tool_call = ToolInvocation(name=block.name, arguments=block.input)

        return LLMResponse(
            content=content,
            model=response.model,
            tool_call=tool_call,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
