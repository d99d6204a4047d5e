"""In-memory conversation store.

Dict-based storage for a single application server process.
Data is lost when the process exits.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from uuid import uuid4

from ..errors import NotFoundError
from .base import ConversationStore
from .models import Conversation, Message

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_MAX_CONVERSATIONS = 100

Clock = Callable[[], float]


def generate_conversation_id() -> str:
    return f"conv_{uuid4().hex}"


class InMemoryConversationStore(ConversationStore):
    """In-memory conversation store with TTL expiry and a capacity cap.

    Conversations are kept in access order: every read or write moves the
    conversation to the end, so the front of the map is always the least
    recently accessed one.

    None of the methods suspend between reading and mutating the map, so
    under asyncio the store needs no lock: sweep, eviction and appends never
    interleave.
    """

    def __init__(
        self,
        system_prompt: str | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_conversations: int = DEFAULT_MAX_CONVERSATIONS,
        clock: Clock = time.monotonic,
        id_factory: Callable[[], str] = generate_conversation_id,
    ):
        """Initialize the store.

        Args:
            system_prompt: Content of the system message seeded into every
                conversation (default: the packaged system prompt)
            ttl_seconds: Idle time after which a conversation expires
            max_conversations: Maximum number of live conversations
            clock: Zero-argument callable returning the current time in seconds
            id_factory: Callable producing candidate conversation ids
        """
        if max_conversations < 1:
            raise ValueError("max_conversations must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        if system_prompt is None:
            from ..prompts import get_system_prompt
            system_prompt = get_system_prompt()

        self._system_prompt = system_prompt
        self._ttl = ttl_seconds
        self._max = max_conversations
        self._clock = clock
        self._id_factory = id_factory
        self._conversations: OrderedDict[str, Conversation] = OrderedDict()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_conversations(self) -> int:
        return self._max

    async def get_or_create(
        self,
        conversation_id: str | None = None
    ) -> tuple[str, list[Message]]:
        """Get a live conversation or create a new one."""
        if conversation_id is not None:
            conversation = self._lookup(conversation_id)
            if conversation is not None:
                return conversation.id, list(conversation.messages)

        conversation = Conversation(
            id=self._allocate_id(),
            messages=[Message(role="system", content=self._system_prompt)],
            last_accessed_at=self._clock(),
        )
        self._conversations[conversation.id] = conversation
        self._evict_over_capacity()
        return conversation.id, list(conversation.messages)

    async def append(self, conversation_id: str, message: Message) -> None:
        """Append a message to a live conversation."""
        conversation = self._lookup(conversation_id)
        if conversation is None:
            raise NotFoundError(conversation_id)
        conversation.messages.append(message)
        self._evict_over_capacity()

    async def get(
        self,
        conversation_id: str,
        include_system: bool = False
    ) -> list[Message]:
        """Get messages of a live conversation."""
        conversation = self._lookup(conversation_id)
        if conversation is None:
            raise NotFoundError(conversation_id)
        if include_system:
            return list(conversation.messages)
        return conversation.visible_messages

    async def delete(self, conversation_id: str) -> bool:
        """Delete a conversation."""
        return self._conversations.pop(conversation_id, None) is not None

    async def contains(self, conversation_id: str) -> bool:
        conversation = self._conversations.get(conversation_id)
        return conversation is not None and not self._is_expired(conversation, self._clock())

    async def sweep(self) -> int:
        """Remove expired conversations."""
        now = self._clock()
        expired = [
            cid for cid, conversation in self._conversations.items()
            if self._is_expired(conversation, now)
        ]
        for cid in expired:
            del self._conversations[cid]
        if expired:
            logger.info("Cleaned up %d expired conversations", len(expired))
        return len(expired)

    async def enforce_capacity(self) -> int:
        return self._evict_over_capacity()

    async def count(self) -> int:
        return len(self._conversations)

    @property
    def backend_type(self) -> str:
        return "memory"

    def _lookup(self, conversation_id: str) -> Conversation | None:
        """Find a live conversation and mark it as accessed.

        A conversation past its TTL that the sweeper has not reached yet is
        dropped here, so expiry does not depend on sweep timing.
        """
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None

        now = self._clock()
        if self._is_expired(conversation, now):
            del self._conversations[conversation_id]
            logger.debug("Conversation %s expired on access", conversation_id)
            return None

        conversation.touch(now)
        self._conversations.move_to_end(conversation_id)
        return conversation

    def _is_expired(self, conversation: Conversation, now: float) -> bool:
        return now - conversation.last_accessed_at > self._ttl

    def _evict_over_capacity(self) -> int:
        removed = 0
        while len(self._conversations) > self._max:
            self._conversations.popitem(last=False)
            removed += 1
        if removed:
            logger.info("Removed %d oldest conversations to enforce limit", removed)
        return removed

    def _allocate_id(self) -> str:
        candidate = self._id_factory()
        while candidate in self._conversations:
            candidate = self._id_factory()
        return candidate
