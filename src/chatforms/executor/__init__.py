"""Tool executor module: runs tools for the orchestration loop."""

from .base import ToolExecutor
from .factory import create_tool_executor
from .http import HttpToolExecutor
from .local import LocalToolExecutor

__all__ = [
    "ToolExecutor",
    "HttpToolExecutor",
    "LocalToolExecutor",
    "create_tool_executor",
]
