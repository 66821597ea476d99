from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from redis.asyncio import Redis

from realtime_chat.api.schemas.chat import ConversationState

logger = logging.getLogger(__name__)


class RedisConversationStore:
    """Redis-backed whole-record store for per-session conversation state."""

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "chat:sessions",
        redis_client: Redis | None = None,
    ) -> None:
        self._redis = redis_client if redis_client is not None else Redis.from_url(redis_url, decode_responses=True)
        self._key_prefix = key_prefix.strip(":")

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def load(self, session_id: str) -> ConversationState:
        value = await self._redis.get(self._state_key(session_id))
        if value is None:
            return ConversationState()
        try:
            return ConversationState.model_validate(json.loads(value))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("conversation state decode failure", extra={"session_id": session_id})
            return ConversationState()

    async def save(self, session_id: str, state: ConversationState) -> None:
        await self._redis.set(self._state_key(session_id), json.dumps(state.to_wire()))

    async def close(self) -> None:
        await self._redis.aclose()

    def _state_key(self, session_id: str) -> str:
        return f"{self._key_prefix}:v1:conversation:{session_id}"


class MemoryConversationStore:
    """Process-local store for local runs without Redis."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    async def ping(self) -> bool:
        return True

    async def load(self, session_id: str) -> ConversationState:
        value = self._records.get(session_id)
        if value is None:
            return ConversationState()
        return ConversationState.model_validate_json(value)

    async def save(self, session_id: str, state: ConversationState) -> None:
        self._records[session_id] = json.dumps(state.to_wire())

    async def close(self) -> None:
        self._records.clear()
