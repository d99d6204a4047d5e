"""Abstract base class for conversation stores.

This module defines the interface for conversation storage.
The abstraction hides:
- Storage layout and id allocation
- Expiry (TTL) and capacity eviction policy
- Clock source
"""

from abc import ABC, abstractmethod

from .models import Message


class ConversationStore(ABC):
    """Abstract conversation store.

    Owns every conversation's message history and its lifecycle:
    creation, expiry after a TTL, and eviction under a capacity cap.
    """

    @abstractmethod
    async def get_or_create(
        self,
        conversation_id: str | None = None
    ) -> tuple[str, list[Message]]:
        """Return an existing conversation or allocate a new one.

        Args:
            conversation_id: Id to look up; absent or unknown ids allocate a
                new conversation seeded with the system message

        Returns:
            Tuple of (conversation id, full message list including system)
        """

    @abstractmethod
    async def append(self, conversation_id: str, message: Message) -> None:
        """Append a message and enforce the capacity cap.

        Raises:
            NotFoundError: If the conversation is unknown
        """

    @abstractmethod
    async def get(
        self,
        conversation_id: str,
        include_system: bool = False
    ) -> list[Message]:
        """Return the conversation's messages.

        Raises:
            NotFoundError: If the conversation is unknown, expired or evicted
        """

    @abstractmethod
    async def delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns whether anything was removed."""

    @abstractmethod
    async def contains(self, conversation_id: str) -> bool:
        """Check whether a live conversation exists, without touching it."""

    @abstractmethod
    async def sweep(self) -> int:
        """Remove every expired conversation. Returns the number removed."""

    @abstractmethod
    async def enforce_capacity(self) -> int:
        """Evict least recently accessed conversations above the cap."""

    @abstractmethod
    async def count(self) -> int:
        """Number of live conversations."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
