"""Request bodies accepted by the application server."""

from typing import Any

from ..models import WireModel


class ChatRequest(WireModel):
    """Body of ``POST /api/chat``.

    ``message`` is validated by the orchestrator so that missing, blank and
    non-string messages all surface as the same client error.
    """

    message: Any = None
    conversation_id: str | None = None


class ToolCallRequest(WireModel):
    """Body of ``POST /api/tool-call``, sent when a rendered form is submitted."""

    tool_name: Any = None
    params: Any = None
    conversation_id: str | None = None
