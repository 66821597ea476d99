from __future__ import annotations

import base64
import re
from typing import Any

from realtime_chat.api.schemas.chat import ChatTurn

HISTORY_LIMIT = 50
CONTEXT_WINDOW = 12
IMAGE_ONLY_PLACEHOLDER = "Describe this image."

SYSTEM_PROMPT = " ".join(
    [
        "You are a helpful realtime chat assistant.",
        "Be concise, actionable, and friendly.",
        "If you don't know something, say so and suggest next steps.",
    ]
)

_IMAGE_DATA_URL = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def accepted_image(value: object) -> str | None:
    """Return ``value`` when it is an inline base64 image data URL, otherwise ``None``."""

    if isinstance(value, str) and _IMAGE_DATA_URL.match(value):
        return value
    return None


def image_media_type(data_url: str) -> str:
    return data_url[len("data:") : data_url.index(";")]


def image_bytes(data_url: str) -> bytes:
    _, _, payload = data_url.partition(",")
    return base64.b64decode(payload)


def build_user_turn(content: str, image_data_url: str | None) -> ChatTurn | None:
    text = content.strip()
    if not text and not image_data_url:
        return None
    return ChatTurn(
        role="user",
        content=text or IMAGE_ONLY_PLACEHOLDER,
        image_data_url=image_data_url,
    )


def recent_history(messages: list[ChatTurn]) -> list[ChatTurn]:
    return messages[-HISTORY_LIMIT:]


def context_window(messages: list[ChatTurn]) -> list[ChatTurn]:
    return messages[-CONTEXT_WINDOW:]


def render_context(turns: list[ChatTurn], *, vision: bool) -> list[dict[str, Any]]:
    """Render turns as chat messages behind the system instruction.

    Only the vision request carries image parts; the text model always gets plain strings.
    """

    rendered: list[dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
    for turn in turns:
        if vision and turn.image_data_url:
            rendered.append(
                {
                    "role": turn.role,
                    "content": [
                        {"type": "text", "text": turn.content},
                        {"type": "image_url", "image_url": {"url": turn.image_data_url}},
                    ],
                }
            )
        else:
            rendered.append({"role": turn.role, "content": turn.content})
    return rendered


def flatten_prompt(user_text: str) -> str:
    return f"{SYSTEM_PROMPT}\n\nUser: {user_text}"
