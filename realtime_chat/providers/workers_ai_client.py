from __future__ import annotations

from typing import Any

import httpx

from realtime_chat.providers.base import MAX_TOKENS, ModelClient, ModelClientError, ModelReply, reply_from_payload


class WorkersAIClient(ModelClient):
    """Client for the hosted Workers AI ``/ai/run/{model}`` REST endpoint."""

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout_seconds: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/accounts/{account_id}/ai",
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout_seconds,
        )

    async def run_chat(self, model: str, messages: list[dict[str, Any]], max_tokens: int = MAX_TOKENS) -> ModelReply:
        return await self._run(model, {"messages": messages, "max_tokens": max_tokens})

    async def run_prompt(
        self,
        model: str,
        prompt: str,
        image: bytes,
        max_tokens: int = MAX_TOKENS,
        *,
        media_type: str = "image/png",
    ) -> ModelReply:
        return await self._run(model, {"prompt": prompt, "image": list(image), "max_tokens": max_tokens})

    async def close(self) -> None:
        await self._client.aclose()

    async def _run(self, model: str, payload: dict[str, Any]) -> ModelReply:
        try:
            response = await self._client.post(f"/run/{model}", json=payload)
        except httpx.TimeoutException as exc:
            raise ModelClientError(status_code=504, message=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise ModelClientError(status_code=502, message=str(exc)) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            raise ModelClientError(status_code=response.status_code, message=_error_text(body, response.text))
        if isinstance(body, dict) and body.get("success") is False:
            raise ModelClientError(status_code=502, message=_error_text(body, response.text))
        if body is None:
            return reply_from_payload(response.text)
        return reply_from_payload(body)


def _error_text(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            parts = []
            for error in errors:
                if isinstance(error, dict):
                    code = error.get("code")
                    message = error.get("message", "")
                    parts.append(f"{code}: {message}" if code is not None else str(message))
                else:
                    parts.append(str(error))
            return "; ".join(parts)
    return fallback or "Workers AI request failed"
