"""Wiring of the application server's collaborators from settings."""

from fastapi import Request

from ..config import Settings
from ..executor import create_tool_executor
from ..llm import create_llm_provider
from ..memory import create_conversation_store
from ..orchestrator import ChatOrchestrator
from ..tools import ToolRegistry, default_tool_catalog


def build_orchestrator(settings: Settings) -> ChatOrchestrator:
    """Create the orchestrator with an HTTP tool executor and the configured model.

    Raises:
        ConfigurationError: If the language model API key is missing
    """
    llm = create_llm_provider(settings.llm_provider, **settings.llm_config())
    store = create_conversation_store(
        "memory",
        ttl_seconds=settings.conversation_ttl_seconds,
        max_conversations=settings.max_conversations,
    )
    executor = create_tool_executor(
        "http",
        base_url=settings.tool_server_url,
        timeout=settings.tool_timeout_seconds,
    )
    return ChatOrchestrator(store, llm, executor, catalog=default_tool_catalog())


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


def get_registry(request: Request) -> ToolRegistry:
    return request.app.state.registry
