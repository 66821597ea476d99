from __future__ import annotations

import punq
from fastapi.requests import HTTPConnection

from realtime_chat.core.settings import Settings
from realtime_chat.providers.base import ModelClient
from realtime_chat.providers.factory import build_model_client
from realtime_chat.services.contracts import ConversationStoreProtocol
from realtime_chat.services.session_directory import SessionDirectory
from realtime_chat.services.state_store import MemoryConversationStore, RedisConversationStore


def _build_store(settings: Settings) -> ConversationStoreProtocol:
    if settings.chat_state_backend == "memory":
        return MemoryConversationStore()
    return RedisConversationStore(
        redis_url=settings.chat_state_redis_url,
        key_prefix=settings.chat_state_key_prefix,
    )


def build_container(settings: Settings) -> punq.Container:
    container = punq.Container()
    container.register(Settings, instance=settings)

    container.register(
        ConversationStoreProtocol,
        factory=lambda: _build_store(settings),
        scope=punq.Scope.singleton,
    )
    container.register(
        ModelClient,
        factory=lambda: build_model_client(settings),
        scope=punq.Scope.singleton,
    )
    container.register(
        SessionDirectory,
        factory=lambda: SessionDirectory(
            store=container.resolve(ConversationStoreProtocol),
            model_client=container.resolve(ModelClient),
        ),
        scope=punq.Scope.singleton,
    )

    return container


def get_container(connection: HTTPConnection) -> punq.Container:
    return connection.app.state.container
