from __future__ import annotations

import base64
from typing import Any

from openai import APIError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError

from realtime_chat.providers.base import MAX_TOKENS, ModelClient, ModelClientError, ModelReply, reply_from_payload


class OpenAICompatibleClient(ModelClient):
    """Chat-completions client for OpenAI-compatible inference endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds)

    async def run_chat(self, model: str, messages: list[dict[str, Any]], max_tokens: int = MAX_TOKENS) -> ModelReply:
        return await self._complete(model=model, messages=messages, max_tokens=max_tokens)

    async def run_prompt(
        self,
        model: str,
        prompt: str,
        image: bytes,
        max_tokens: int = MAX_TOKENS,
        *,
        media_type: str = "image/png",
    ) -> ModelReply:
        encoded = base64.b64encode(image).decode("ascii")
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{encoded}"}},
                ],
            }
        ]
        return await self._complete(model=model, messages=messages, max_tokens=max_tokens)

    async def close(self) -> None:
        await self._client.close()

    async def _complete(self, **payload: Any) -> ModelReply:
        try:
            response = await self._client.chat.completions.create(**payload)
        except (APITimeoutError,) as exc:
            raise ModelClientError(status_code=504, message=str(exc)) from exc
        except (RateLimitError,) as exc:
            raise ModelClientError(status_code=429, message=str(exc)) from exc
        except (APIStatusError,) as exc:
            status = exc.status_code
            mapped_status = 502 if status and status >= 500 else (status or 502)
            raise ModelClientError(status_code=mapped_status, message=str(exc)) from exc
        except APIError as exc:
            raise ModelClientError(status_code=502, message=str(exc)) from exc

        body = response.model_dump(mode="json")
        choices = body.get("choices") or []
        if choices:
            content = (choices[0].get("message") or {}).get("content")
            if isinstance(content, str) and content:
                return ModelReply(text=content, source="response")
        return reply_from_payload(body)
