"""Pytest configuration and shared fixtures."""
import asyncio
import os
from typing import Any

import pytest

from chatforms.executor import ToolExecutor
from chatforms.llm import ChatMessage, LLMProvider, LLMResponse
from chatforms.memory import InMemoryConversationStore
from chatforms.models import ToolInvocation, ToolResult, ToolSchema
from chatforms.orchestrator import ChatOrchestrator
from chatforms.tools import create_default_registry, default_tool_catalog

SYSTEM_PROMPT = "You are a test assistant."


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedLLM(LLMProvider):
    """LLM provider that replays queued responses and records every call.

    Queue an ``LLMResponse`` to return it, or an exception to raise it.
    When the queue is empty a plain text reply is returned.
    """

    def __init__(self, *script: LLMResponse | Exception):
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self.delay = 0.0

    def reply(self, content: str) -> None:
        self.script.append(LLMResponse(content=content, model="scripted"))

    def request_tool(self, name: str, /, **arguments: Any) -> None:
        self.script.append(LLMResponse(
            model="scripted",
            tool_call=ToolInvocation(name=name, arguments=arguments),
        ))

    def fail(self, error: Exception) -> None:
        self.script.append(error)

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        tools: list[ToolSchema] | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls.append({"messages": list(messages), "tools": tools, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.script:
            return LLMResponse(content="OK", model="scripted")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    async def close(self) -> None:
        self.closed = True


class RecordingExecutor(ToolExecutor):
    """Executor backed by the real reservation tools that records each call."""

    def __init__(self):
        self.registry = create_default_registry()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.error: Exception | None = None
        self.closed = False

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        self.calls.append((tool_name, arguments))
        if self.error is not None:
            raise self.error
        return await self.registry.execute(tool_name, arguments)

    async def list_tools(self) -> list[ToolSchema]:
        return self.registry.schemas()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory store with a fake clock and small limits."""
    return InMemoryConversationStore(
        system_prompt=SYSTEM_PROMPT,
        ttl_seconds=3600,
        max_conversations=100,
        clock=clock,
    )


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def orchestrator(store, llm, executor):
    return ChatOrchestrator(store, llm, executor, catalog=default_tool_catalog())


@pytest.fixture
def reservation_params():
    """Valid submit_reservation arguments as the form would send them."""
    return {
        "name": "Jane Doe",
        "date": "2999-12-31",
        "time": "19:30",
        "partySize": 4,
        "contact": "555-0100",
        "restaurantName": "Chez Test",
    }
