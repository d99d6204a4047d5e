"""Application server: chat and tool-call endpoints for the browser client."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Settings
from ..errors import NotFoundError
from ..memory import ConversationSweeper
from ..orchestrator import ChatOrchestrator
from .dependencies import build_orchestrator, get_orchestrator
from .errors import install_error_handlers
from .schemas import ChatRequest, ToolCallRequest

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "POST /api/chat": "Send a message and receive the assistant's reply",
    "GET /api/chat/{conversationId}": "Get a conversation's history",
    "DELETE /api/chat/{conversationId}": "Delete a conversation",
    "POST /api/tool-call": "Run a tool on behalf of a rendered form",
    "GET /health": "Health check",
}


def create_chat_app(
    settings: Settings | None = None,
    orchestrator: ChatOrchestrator | None = None,
) -> FastAPI:
    """Build the application server.

    Collaborators are created eagerly so that a missing API key fails at
    startup rather than on the first request.

    Args:
        settings: Runtime settings (default: read from the environment)
        orchestrator: Pre-built orchestrator (default: built from settings)

    Raises:
        ConfigurationError: If the settings are invalid or incomplete
    """
    if settings is None:
        settings = Settings() if orchestrator is not None else Settings.from_env()
    if orchestrator is None:
        orchestrator = build_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = ConversationSweeper(orchestrator.store, settings.sweep_interval_seconds)
        sweeper.start()
        logger.info(
            "Application server ready (%s store, tools: %s)",
            orchestrator.store.backend_type,
            ", ".join(sorted(orchestrator.allowed_tools)),
        )
        try:
            yield
        finally:
            await sweeper.stop()
            await orchestrator.close()

    app = FastAPI(title="chatforms", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    @app.post("/api/chat")
    async def chat(
        body: ChatRequest,
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        reply = await orchestrator.handle_user_message(body.conversation_id, body.message)
        return {"success": True, **reply.to_wire()}

    @app.get("/api/chat/{conversation_id}")
    async def get_conversation(
        conversation_id: str,
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        messages = await orchestrator.store.get(conversation_id)
        return {
            "success": True,
            "conversationId": conversation_id,
            "messages": [message.to_wire() for message in messages],
        }

    @app.delete("/api/chat/{conversation_id}")
    async def delete_conversation(
        conversation_id: str,
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        if not await orchestrator.store.delete(conversation_id):
            raise NotFoundError(conversation_id)
        return {"success": True, "message": "Conversation deleted"}

    @app.post("/api/tool-call")
    async def tool_call(
        body: ToolCallRequest,
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        reply = await orchestrator.handle_tool_invocation(
            body.conversation_id, body.tool_name, body.params
        )
        return {"success": True, **reply.to_wire()}

    @app.get("/health")
    async def health(
        orchestrator: ChatOrchestrator = Depends(get_orchestrator),
    ) -> dict[str, Any]:
        return {
            "status": "ok",
            "conversations": await orchestrator.store.count(),
        }

    @app.get("/api")
    async def index() -> dict[str, Any]:
        return {"name": "chatforms", "version": __version__, "endpoints": ENDPOINTS}

    return app
