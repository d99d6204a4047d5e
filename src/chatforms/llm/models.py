from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import ToolInvocation


class ChatMessage(BaseModel):
    """Represents a chat message sent to a language model."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(description="Content of the message")


class LLMResponse(BaseModel):
    """Response from an LLM provider.

    Exactly one of ``content`` or ``tool_call`` is meaningful: when the model
    asks for a tool, ``tool_call`` is set and ``content`` may be empty.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Generated text content")
    model: str = Field(description="Model that generated the response")
    tool_call: ToolInvocation | None = Field(
        default=None,
        description="Tool the model asked to invoke"
    )
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )

    @property
    def requests_tool(self) -> bool:
        return self.tool_call is not None
