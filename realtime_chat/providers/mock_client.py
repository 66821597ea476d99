from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from realtime_chat.providers.base import MAX_TOKENS, ModelClient, ModelReply

logger = logging.getLogger(__name__)


class MockModelClient(ModelClient):
    """File-driven mock model client that cycles through predefined replies."""

    _delimiter = "\n--- message\n"

    def __init__(self, messages_file: str) -> None:
        path = Path(messages_file)
        raw_content = path.read_text(encoding="utf-8")
        parsed_messages = [chunk.strip() for chunk in raw_content.split(self._delimiter)]
        self._messages = [message for message in parsed_messages if message]
        if not self._messages:
            raise ValueError(
                f"No mock messages found in {path}. Use delimiter {self._delimiter!r} between messages."
            )
        self._next_index = 0
        logger.info("loaded mock model replies", extra={"messages_count": len(self._messages)})

    async def run_chat(self, model: str, messages: list[dict[str, Any]], max_tokens: int = MAX_TOKENS) -> ModelReply:
        logger.debug("serving mock chat reply", extra={"model": model, "messages_count": len(messages)})
        return self._next_reply()

    async def run_prompt(
        self,
        model: str,
        prompt: str,
        image: bytes,
        max_tokens: int = MAX_TOKENS,
        *,
        media_type: str = "image/png",
    ) -> ModelReply:
        logger.debug("serving mock prompt reply", extra={"model": model, "image_bytes": len(image)})
        return self._next_reply()

    def _next_reply(self) -> ModelReply:
        response = self._messages[self._next_index]
        self._next_index = (self._next_index + 1) % len(self._messages)
        return ModelReply(text=response, source="response")
