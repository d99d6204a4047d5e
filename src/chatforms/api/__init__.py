"""HTTP surfaces: the application server and the tool server."""

from .chat_app import create_chat_app
from .dependencies import build_orchestrator
from .tool_app import create_tool_app

__all__ = ["build_orchestrator", "create_chat_app", "create_tool_app"]
