"""Orchestration loop module."""

from .data_structures import (
    ChatReply,
    ModelReply,
    StepResult,
    ToolInvocationReply,
    ToolNarrated,
    ToolRequested,
)
from .loop import ChatOrchestrator, describe_tool_result

__all__ = [
    "ChatOrchestrator",
    "ChatReply",
    "ModelReply",
    "StepResult",
    "ToolInvocationReply",
    "ToolNarrated",
    "ToolRequested",
    "describe_tool_result",
]
