from __future__ import annotations

from typing import Protocol

from realtime_chat.api.schemas.chat import ConversationState


class ConversationStoreProtocol(Protocol):
    """Durable single-record-per-session store for conversation history."""

    async def ping(self) -> bool:
        """Probe store availability during startup checks."""

    async def load(self, session_id: str) -> ConversationState:
        """Return the stored state, or an empty state when nothing is stored yet."""

    async def save(self, session_id: str, state: ConversationState) -> None:
        """Replace the whole stored record for ``session_id``."""

    async def close(self) -> None:
        """Release underlying network resources during shutdown."""


class ChatConnection(Protocol):
    """Outbound side of one client connection attached to a chat session."""

    async def send(self, message: str) -> None:
        """Send one text frame; implementations drop frames once the peer is gone."""
