from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import json
from typing import Any, Literal

TEXT_MODEL = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"
VISION_MODEL = "@cf/meta/llama-3.2-11b-vision-instruct"
FALLBACK_VISION_MODEL = "@cf/llava-hf/llava-1.5-7b-hf"
MAX_TOKENS = 512

_LICENSE_ERROR_MARKERS = ("5016:", "code 5016", "submit the prompt 'agree'", "prior to using this model")

ReplySource = Literal["response", "result", "output_text", "description", "raw"]


@dataclass
class ModelClientError(Exception):
    status_code: int
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ModelReply:
    text: str
    source: ReplySource


def reply_from_payload(payload: Any) -> ModelReply:
    """Select the reply text from whichever known field an inference response populates."""

    body = payload
    if isinstance(payload, dict) and isinstance(payload.get("result"), dict):
        body = payload["result"]
    if isinstance(body, dict):
        for field in ("response", "result", "output_text", "description"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return ModelReply(text=value, source=field)
    if isinstance(body, str):
        return ModelReply(text=body, source="raw")
    return ModelReply(text=json.dumps(body), source="raw")


def is_license_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _LICENSE_ERROR_MARKERS)


class ModelClient(ABC):
    @abstractmethod
    async def run_chat(self, model: str, messages: list[dict[str, Any]], max_tokens: int = MAX_TOKENS) -> ModelReply:
        raise NotImplementedError

    @abstractmethod
    async def run_prompt(
        self,
        model: str,
        prompt: str,
        image: bytes,
        max_tokens: int = MAX_TOKENS,
        *,
        media_type: str = "image/png",
    ) -> ModelReply:
        raise NotImplementedError

    async def close(self) -> None:
        return None
