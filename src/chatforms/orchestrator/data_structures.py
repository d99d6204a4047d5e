"""Data structures for the orchestration loop.

Each model call or tool call produces one step result. The loop moves
AwaitingModel -> AwaitingTool -> AwaitingNarration -> Done, and the step
variant records which transition happened:

- ModelReply: the model answered with text
- ToolRequested: the model asked for a tool (the loop now awaits the executor)
- ToolNarrated: a tool ran and its outcome has been turned into reply text
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import ToolInvocation, ToolResult, UIResource, WireModel


class ModelReply(BaseModel):
    """The model produced a plain text reply."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["model_reply"] = "model_reply"
    content: str


class ToolRequested(BaseModel):
    """The model asked to invoke a tool."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_requested"] = "tool_requested"
    invocation: ToolInvocation


class ToolNarrated(BaseModel):
    """A tool ran and its result has been turned into reply text.

    Attributes:
        invocation: The tool call that ran
        result: What the executor returned
        content: Reply text (the tool's own message or the model's narration)
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_narrated"] = "tool_narrated"
    invocation: ToolInvocation
    result: ToolResult
    content: str


StepResult = ModelReply | ToolRequested | ToolNarrated


class ChatReply(WireModel):
    """Outcome of handling a user message."""

    conversation_id: str
    message: str
    ui_resource: UIResource | None = None
    function_call: ToolInvocation | None = None


class ToolInvocationReply(WireModel):
    """Outcome of handling a tool invocation coming from a rendered form.

    Attributes:
        conversation_id: Conversation the result was recorded in, if any
        tool_result: Raw result from the executor
        message: Reply text shown to the user
        ui_resource: UI payload returned by the tool, if any
        narrated: Whether ``message`` was written by the model
    """

    conversation_id: str | None = None
    tool_result: ToolResult
    message: str
    ui_resource: UIResource | None = None
    narrated: bool = Field(default=False)
