"""Data models for conversation memory.

These models define the structure of a conversation and its messages,
independent of the storage backend used.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from ..models import ToolInvocation, UIResource, WireModel

Role = Literal["system", "user", "assistant"]


class Message(WireModel):
    """A single role-tagged message.

    Messages are immutable once appended. Only ``role`` and ``content`` are
    replayed to the language model; the tool invocation and UI resource are
    kept so a client can re-render the history.
    """

    role: Role = Field(description="Role of the message sender")
    content: str = Field(description="Text content of the message")
    tool_invocation: ToolInvocation | None = Field(
        default=None,
        description="Tool the assistant invoked to produce this message"
    )
    ui_resource: UIResource | None = Field(
        default=None,
        description="UI payload attached to an assistant message"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Conversation(BaseModel):
    """Complete state of one conversation.

    Invariant: ``messages[0]`` is the single system message inserted at
    creation.
    """

    id: str
    messages: list[Message] = Field(default_factory=list)
    last_accessed_at: float = Field(description="Clock reading of the last read or write")

    @property
    def visible_messages(self) -> list[Message]:
        """Messages without the leading system message."""
        return [m for m in self.messages if m.role != "system"]

    def touch(self, now: float) -> None:
        """Record an access at clock reading ``now``."""
        self.last_accessed_at = now
