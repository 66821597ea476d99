"""Service layer orchestrating chat sessions and their persistence."""

from realtime_chat.services.chat_session import ChatSession
from realtime_chat.services.session_directory import SessionDirectory
from realtime_chat.services.state_store import MemoryConversationStore, RedisConversationStore

__all__ = ["ChatSession", "MemoryConversationStore", "RedisConversationStore", "SessionDirectory"]
