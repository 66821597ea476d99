from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from realtime_chat.providers.base import ModelClient
from realtime_chat.services.chat_session import ChatSession
from realtime_chat.services.contracts import ConversationStoreProtocol

logger = logging.getLogger(__name__)


class SessionDirectory:
    """Keeps at most one live ``ChatSession`` per session identifier in this process."""

    def __init__(self, store: ConversationStoreProtocol, model_client: ModelClient) -> None:
        self._store = store
        self._model_client = model_client
        self._sessions: dict[str, ChatSession] = {}
        self._refcounts: dict[str, int] = {}

    def acquire(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = ChatSession(session_id, self._store, self._model_client)
            self._sessions[session_id] = session
            logger.debug("chat session activated", extra={"session_id": session_id})
        self._refcounts[session_id] = self._refcounts.get(session_id, 0) + 1
        return session

    def release(self, session: ChatSession) -> None:
        session_id = session.session_id
        if self._sessions.get(session_id) is not session:
            return
        remaining = self._refcounts.get(session_id, 0) - 1
        if remaining > 0:
            self._refcounts[session_id] = remaining
            return
        self._refcounts.pop(session_id, None)
        self._sessions.pop(session_id, None)
        logger.debug("chat session deactivated", extra={"session_id": session_id})

    def active_count(self) -> int:
        return len(self._sessions)

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[ChatSession]:
        session = self.acquire(session_id)
        try:
            yield session
        finally:
            self.release(session)
