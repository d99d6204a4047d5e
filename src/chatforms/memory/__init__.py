"""Conversation memory module for chatforms.

Owns per-conversation message history and its lifecycle.
"""

from .base import ConversationStore
from .factory import create_conversation_store
from .in_memory import InMemoryConversationStore
from .models import Conversation, Message
from .sweeper import ConversationSweeper

__all__ = [
    "ConversationStore",
    "Conversation",
    "ConversationSweeper",
    "InMemoryConversationStore",
    "Message",
    "create_conversation_store",
]
