"""Shared test utilities and fixtures for realtime-chat tests."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any

import pytest
import punq

from realtime_chat.core.settings import Settings
from realtime_chat.providers.base import MAX_TOKENS, ModelClient, ModelClientError, ModelReply
from realtime_chat.services.state_store import MemoryConversationStore


class FakeRedisClient:
    """Small async fake matching Redis methods used by RedisConversationStore."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.set_calls: list[tuple[str, str]] = []
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.set_calls.append((key, value))

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def aclose(self) -> None:
        self.closed = True


class FakeModelClient(ModelClient):
    """Scripted model boundary: each call pops the next outcome (reply text or exception)."""

    def __init__(self, chat_outcomes: list[object] | None = None, prompt_outcomes: list[object] | None = None) -> None:
        self._chat_outcomes = list(chat_outcomes or ["ok"])
        self._prompt_outcomes = list(prompt_outcomes or ["described"])
        self.chat_calls: list[tuple[str, list[dict[str, Any]], int]] = []
        self.prompt_calls: list[tuple[str, str, bytes, int]] = []
        self.prompt_media_types: list[str] = []
        self.gate: asyncio.Event | None = None

    async def run_chat(self, model: str, messages: list[dict[str, Any]], max_tokens: int = MAX_TOKENS) -> ModelReply:
        self.chat_calls.append((model, messages, max_tokens))
        if self.gate is not None:
            await self.gate.wait()
        return self._next(self._chat_outcomes, "response")

    async def run_prompt(
        self,
        model: str,
        prompt: str,
        image: bytes,
        max_tokens: int = MAX_TOKENS,
        *,
        media_type: str = "image/png",
    ) -> ModelReply:
        self.prompt_calls.append((model, prompt, image, max_tokens))
        self.prompt_media_types.append(media_type)
        return self._next(self._prompt_outcomes, "description")

    @staticmethod
    def _next(outcomes: list[object], source: str) -> ModelReply:
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return ModelReply(text=str(outcome), source=source)  # type: ignore[arg-type]


class RecordingConnection:
    """Chat connection double that keeps every decoded outbound frame."""

    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []

    async def send(self, message: str) -> None:
        self.frames.append(json.loads(message))

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.frames]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


LICENSE_ERROR = ModelClientError(
    status_code=403,
    message="5016: Prior to using this model, you must submit the prompt 'agree'",
)
PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def memory_store() -> MemoryConversationStore:
    return MemoryConversationStore()


@pytest.fixture
def fake_redis() -> FakeRedisClient:
    return FakeRedisClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def test_settings() -> Settings:
    return Settings()


def build_test_request(container: punq.Container):
    """Build a request-shaped object using a real punq container in app state."""

    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(container=container)))


def build_test_container(bindings: dict[object, object]) -> punq.Container:
    """Create a punq container and bind protocol/service keys to test doubles."""

    container = punq.Container()
    for key, value in bindings.items():
        container.register(key, instance=value)
    return container
