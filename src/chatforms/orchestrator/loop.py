"""Orchestration loop: user message or tool result in, one reply out."""

import asyncio
import json
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any
from weakref import WeakValueDictionary

from ..errors import ExternalServiceError, InvalidInputError, NotFoundError
from ..executor import ToolExecutor
from ..llm import ChatMessage, LLMProvider
from ..memory import ConversationStore, Message
from ..models import ToolInvocation, ToolResult, ToolSchema
from ..prompts import render_tool_result_prompt
from .data_structures import (
    ChatReply,
    ModelReply,
    StepResult,
    ToolInvocationReply,
    ToolNarrated,
    ToolRequested,
)

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I didn't quite understand that. Could you rephrase?"
FORM_SHOWN_REPLY = "Here is the form."


def describe_tool_result(result: ToolResult) -> str:
    """Plain-text description of a tool result, preferring the tool's own message."""
    if result.message:
        return result.message
    if not result.success:
        return f"The request could not be completed: {result.error or 'unknown error'}"
    if result.data is not None:
        return json.dumps(result.data, ensure_ascii=False)
    return "Done."


class ChatOrchestrator:
    """Mediates between the conversation store, the model and the tools.

    Hidden design decisions:
    - How history is replayed to the model
    - When the model is asked to narrate a tool result
    - Per-conversation ordering of appends

    Operations on the same conversation id are serialized, so concurrent
    requests cannot interleave their appends. Nothing is retried: an
    external failure aborts the operation after the user message has been
    recorded and before any assistant message is.
    """

    def __init__(
        self,
        store: ConversationStore,
        llm: LLMProvider,
        executor: ToolExecutor,
        catalog: list[ToolSchema],
        **llm_options: Any
    ):
        """Initialize the orchestrator.

        Args:
            store: Conversation store
            llm: Language model gateway
            executor: Tool executor
            catalog: Tool schemas offered to the model; their names are also
                the allow-list for direct tool invocation
            **llm_options: Extra arguments for every chat completion
                (temperature, max_tokens, ...)
        """
        self._store = store
        self._llm = llm
        self._executor = executor
        self._catalog = list(catalog)
        self._allowed_tools = frozenset(tool.name for tool in self._catalog)
        self._llm_options = llm_options
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def allowed_tools(self) -> frozenset[str]:
        return self._allowed_tools

    @property
    def catalog(self) -> list[ToolSchema]:
        return list(self._catalog)

    async def close(self) -> None:
        """Close the model gateway and the tool executor."""
        try:
            await self._executor.close()
        finally:
            await self._llm.close()

    async def handle_user_message(
        self,
        conversation_id: str | None,
        text: Any
    ) -> ChatReply:
        """Handle a message typed by the user.

        Args:
            conversation_id: Existing conversation, or None to start one
            text: The user's message

        Returns:
            ChatReply with the assistant's reply and optional UI resource

        Raises:
            InvalidInputError: If the message is not a non-blank string
            ExternalServiceError: If the model or a tool call fails
            NotFoundError: If the conversation is evicted mid-operation
        """
        if text is None:
            raise InvalidInputError("Message is required")
        if not isinstance(text, str):
            raise InvalidInputError("Message must be a string")
        text = text.strip()
        if not text:
            raise InvalidInputError("Message is required")

        conversation_id, _ = await self._store.get_or_create(conversation_id)

        async with self._conversation_lock(conversation_id):
            await self._store.append(conversation_id, Message(role="user", content=text))
            history = await self._store.get(conversation_id, include_system=True)

            step = await self._ask_model(history, tools=self._catalog)
            if isinstance(step, ToolRequested):
                step = await self._run_requested_tool(step)

            reply = self._assistant_message(step)
            await self._store.append(conversation_id, reply)

        return ChatReply(
            conversation_id=conversation_id,
            message=reply.content,
            ui_resource=reply.ui_resource,
            function_call=reply.tool_invocation,
        )

    async def handle_tool_invocation(
        self,
        conversation_id: str | None,
        tool_name: Any,
        arguments: Any
    ) -> ToolInvocationReply:
        """Handle a tool invocation coming from a rendered UI resource.

        Args:
            conversation_id: Conversation the form belongs to, if known
            tool_name: Tool to run; must be in the allow-list
            arguments: Parameter object for the tool

        Returns:
            ToolInvocationReply with the raw tool result and the reply text

        Raises:
            InvalidInputError: If the tool is not allowed or the arguments
                are not an object; nothing is executed or recorded
            ExternalServiceError: If the tool call fails
        """
        if not isinstance(tool_name, str) or tool_name not in self._allowed_tools:
            raise InvalidInputError(f"Unknown tool: {tool_name}")
        if not isinstance(arguments, Mapping):
            raise InvalidInputError("Tool parameters must be an object")

        invocation = ToolInvocation(name=tool_name, arguments=dict(arguments))
        result = await self._execute_tool(invocation)
        raw_reply = ToolInvocationReply(
            tool_result=result,
            message=describe_tool_result(result),
            ui_resource=result.ui_resource,
        )

        if conversation_id is None:
            return raw_reply

        async with self._conversation_lock(conversation_id):
            if not await self._store.contains(conversation_id):
                return raw_reply

            try:
                await self._store.append(
                    conversation_id,
                    Message(role="user", content=self._tool_result_prompt(invocation, result)),
                )
                history = await self._store.get(conversation_id, include_system=True)
            except NotFoundError:
                logger.warning(
                    "Conversation %s vanished before tool '%s' could be recorded",
                    conversation_id, tool_name
                )
                return raw_reply

            try:
                step = await self._narrate(history, invocation, result)
            except ExternalServiceError:
                # The tool already ran; report its own result rather than failing.
                logger.exception(
                    "Narration of tool '%s' failed in conversation %s",
                    tool_name, conversation_id
                )
                return raw_reply.model_copy(update={"conversation_id": conversation_id})

            try:
                await self._store.append(
                    conversation_id,
                    Message(role="assistant", content=step.content, ui_resource=result.ui_resource),
                )
            except NotFoundError:
                logger.warning(
                    "Conversation %s vanished during narration of tool '%s'",
                    conversation_id, tool_name
                )
                return raw_reply.model_copy(update={"message": step.content, "narrated": True})

        return ToolInvocationReply(
            conversation_id=conversation_id,
            tool_result=result,
            message=step.content,
            ui_resource=result.ui_resource,
            narrated=True,
        )

    async def _ask_model(
        self,
        history: list[Message],
        tools: list[ToolSchema] | None
    ) -> StepResult:
        """AwaitingModel: replay the history and interpret the answer."""
        messages = [ChatMessage(role=m.role, content=m.content) for m in history]
        response = await self._llm.chat_completion(
            messages,
            tools=tools or None,
            **self._llm_options
        )

        if response.tool_call is not None and tools:
            if response.tool_call.name not in self._allowed_tools:
                raise ExternalServiceError(
                    "llm", f"Model requested unknown tool '{response.tool_call.name}'"
                )
            logger.info(
                "Model requested tool '%s' with %d arguments",
                response.tool_call.name, len(response.tool_call.arguments)
            )
            return ToolRequested(invocation=response.tool_call)

        return ModelReply(content=response.content.strip() or FALLBACK_REPLY)

    async def _narrate(
        self,
        history: list[Message],
        invocation: ToolInvocation,
        result: ToolResult
    ) -> ToolNarrated:
        """AwaitingNarration: have the model report a tool result, with no tools offered.

        A blank narration falls back to the tool's own description.
        """
        messages = [ChatMessage(role=m.role, content=m.content) for m in history]
        response = await self._llm.chat_completion(messages, tools=None, **self._llm_options)
        return ToolNarrated(
            invocation=invocation,
            result=result,
            content=response.content.strip() or describe_tool_result(result),
        )

    async def _run_requested_tool(self, step: ToolRequested) -> ToolNarrated:
        """AwaitingTool: run the tool and fold its result into reply text."""
        result = await self._execute_tool(step.invocation)
        if result.ui_resource is not None:
            content = result.message or FORM_SHOWN_REPLY
        else:
            content = describe_tool_result(result)
        return ToolNarrated(invocation=step.invocation, result=result, content=content)

    async def _execute_tool(self, invocation: ToolInvocation) -> ToolResult:
        return await self._executor.execute(invocation.name, invocation.arguments)

    @staticmethod
    def _assistant_message(step: StepResult) -> Message:
        if isinstance(step, ToolNarrated):
            return Message(
                role="assistant",
                content=step.content,
                tool_invocation=step.invocation,
                ui_resource=step.result.ui_resource,
            )
        if isinstance(step, ModelReply):
            return Message(role="assistant", content=step.content)
        raise TypeError(f"Cannot build a reply from unfinished step {step.kind}")

    @staticmethod
    def _tool_result_prompt(invocation: ToolInvocation, result: ToolResult) -> str:
        details = describe_tool_result(result)
        if result.data is not None and result.message:
            details += "\n" + json.dumps(result.data, ensure_ascii=False)
        return render_tool_result_prompt(
            tool_name=invocation.name,
            outcome="succeeded" if result.success else "failed",
            details=details,
        )

    @asynccontextmanager
    async def _conversation_lock(self, conversation_id: str):
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        async with lock:
            yield
