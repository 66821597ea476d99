from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import json
import logging
from typing import Any

from realtime_chat.api.schemas.chat import ChatTurn, ConversationState
from realtime_chat.providers.base import (
    FALLBACK_VISION_MODEL,
    MAX_TOKENS,
    TEXT_MODEL,
    VISION_MODEL,
    ModelClient,
    ModelReply,
    is_license_error,
)
from realtime_chat.services.chat_stream import encode_frame, history_frame, send_failure, stream_reply
from realtime_chat.services.contracts import ChatConnection, ConversationStoreProtocol
from realtime_chat.services.conversation import (
    accepted_image,
    build_user_turn,
    context_window,
    flatten_prompt,
    image_bytes,
    image_media_type,
    recent_history,
    render_context,
)

logger = logging.getLogger(__name__)

ASSISTANT_ERROR_FALLBACK = (
    "I ran into a temporary issue while generating a response. Please try again in a moment."
)
VISION_LICENSE_REQUIRED_MESSAGE = (
    "The vision model needs a one-time license acknowledgment before it can read images. "
    "Ask the operator to send the prompt 'agree' to the vision model once, then try again."
)


class AssistantTurnFailed(Exception):
    """A model turn was abandoned; ``user_message`` replaces the reply on the wire."""

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class ChatSession:
    """Conversation handler bound to one session identifier.

    History is cached in memory after the first load and every state change is written
    through to the store as a whole-record replace. Writes are serialized by a per-session
    lock so the store always ends up with the most recently assigned sequence.

    The model call runs without holding that lock. A ``reset`` arriving from another
    connection while a reply is in flight is therefore overwritten when the reply is
    persisted, because the reply is appended to the sequence captured before the call.
    """

    def __init__(
        self,
        session_id: str,
        store: ConversationStoreProtocol,
        model_client: ModelClient,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.session_id = session_id
        self._store = store
        self._model_client = model_client
        self._sleep = sleep
        self._messages: list[ChatTurn] | None = None
        self._write_lock = asyncio.Lock()

    async def state(self) -> ConversationState:
        return ConversationState(messages=list(await self._load_messages()))

    async def on_connect(self, connection: ChatConnection) -> None:
        messages = recent_history(await self._load_messages())
        await connection.send(encode_frame(history_frame([turn.to_wire() for turn in messages])))

    async def on_message(self, connection: ChatConnection, message: str) -> None:
        try:
            payload = json.loads(message)
        except (ValueError, TypeError, RecursionError):
            return
        if not isinstance(payload, dict):
            return

        message_type = payload.get("type")
        if message_type == "reset":
            await self._reset(connection)
        elif message_type == "user":
            await self._handle_user(connection, payload)

    async def _reset(self, connection: ChatConnection) -> None:
        await self._set_messages([])
        logger.info("conversation reset", extra={"session_id": self.session_id})
        await connection.send(encode_frame(history_frame([])))

    async def _handle_user(self, connection: ChatConnection, payload: dict[str, Any]) -> None:
        content = payload.get("content")
        if not isinstance(content, str):
            return
        image = accepted_image(payload.get("imageDataUrl"))
        user_turn = build_user_turn(content, image)
        if user_turn is None:
            return

        next_messages = [*await self._load_messages(), user_turn]
        await self._set_messages(next_messages)

        context = context_window(next_messages)
        try:
            reply = await self._generate(user_turn, context)
        except AssistantTurnFailed as failure:
            await send_failure(connection, failure.user_message)
            return

        # Appended to the captured sequence, not re-read state (see class docstring).
        await self._set_messages([*next_messages, ChatTurn(role="assistant", content=reply.text)])
        await stream_reply(connection, reply.text, sleep=self._sleep)

    async def _generate(self, user_turn: ChatTurn, context: list[ChatTurn]) -> ModelReply:
        image = user_turn.image_data_url
        vision = image is not None
        model = VISION_MODEL if vision else TEXT_MODEL
        logger.info(
            "requesting assistant reply",
            extra={"session_id": self.session_id, "model": model, "has_image": vision, "context_size": len(context)},
        )
        try:
            return await self._model_client.run_chat(model, render_context(context, vision=vision), MAX_TOKENS)
        except Exception as exc:  # noqa: BLE001
            if image is not None and is_license_error(exc):
                return await self._generate_fallback(user_turn.content, image, exc)
            logger.exception("assistant reply failed", extra={"session_id": self.session_id, "model": model})
            raise AssistantTurnFailed(ASSISTANT_ERROR_FALLBACK) from exc

    async def _generate_fallback(self, user_text: str, image_data_url: str, cause: Exception) -> ModelReply:
        logger.warning(
            "vision model requires license acknowledgment; retrying with fallback model",
            extra={"session_id": self.session_id, "model": FALLBACK_VISION_MODEL, "cause": str(cause)},
        )
        try:
            return await self._model_client.run_prompt(
                FALLBACK_VISION_MODEL,
                flatten_prompt(user_text),
                image_bytes(image_data_url),
                MAX_TOKENS,
                media_type=image_media_type(image_data_url),
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("fallback vision reply failed", extra={"session_id": self.session_id})
            raise AssistantTurnFailed(VISION_LICENSE_REQUIRED_MESSAGE) from exc

    async def _load_messages(self) -> list[ChatTurn]:
        if self._messages is None:
            state = await self._store.load(self.session_id)
            if self._messages is None:
                self._messages = state.messages
        return self._messages

    async def _set_messages(self, messages: list[ChatTurn]) -> None:
        self._messages = messages
        async with self._write_lock:
            await self._store.save(self.session_id, ConversationState(messages=messages))
