from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator
import json
from typing import Literal, TypedDict

from realtime_chat.services.contracts import ChatConnection

CHUNK_WORDS = 3
CHUNK_DELAY_SECONDS = 0.024


class HistoryFrame(TypedDict):
    type: Literal["history"]
    messages: list[dict[str, str]]


class AssistantStartFrame(TypedDict):
    type: Literal["assistant_start"]


class AssistantContentFrame(TypedDict):
    type: Literal["assistant_chunk", "assistant_done", "assistant"]
    content: str


ChatFrame = HistoryFrame | AssistantStartFrame | AssistantContentFrame


def encode_frame(frame: ChatFrame) -> str:
    return json.dumps(frame)


def history_frame(messages: list[dict[str, str]]) -> HistoryFrame:
    return {"type": "history", "messages": messages}


def chunk_words(text: str, size: int = CHUNK_WORDS) -> Iterator[str]:
    """Yield groups of ``size`` whitespace-delimited words, each with a trailing space.

    Text without any word tokens is yielded unchanged as a single chunk.
    """

    words = text.split()
    if not words:
        yield text
        return
    for start in range(0, len(words), size):
        yield " ".join(words[start : start + size]) + " "


async def stream_reply(
    connection: ChatConnection,
    text: str,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> None:
    """Emit a finished reply as start, paced word-group chunks, done and assistant frames."""

    await connection.send(encode_frame({"type": "assistant_start"}))
    for index, chunk in enumerate(chunk_words(text)):
        if index:
            await sleep(CHUNK_DELAY_SECONDS)
        await connection.send(encode_frame({"type": "assistant_chunk", "content": chunk}))
    await _send_final(connection, text)


async def send_failure(connection: ChatConnection, text: str) -> None:
    await _send_final(connection, text)


async def _send_final(connection: ChatConnection, text: str) -> None:
    await connection.send(encode_frame({"type": "assistant_done", "content": text}))
    # Plain clients only understand the legacy single-message frame.
    await connection.send(encode_frame({"type": "assistant", "content": text}))
