"""Router tests for the WebSocket chat endpoint and RPC-style state read."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi import FastAPI, WebSocketDisconnect
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from realtime_chat.api.router import api_router
from realtime_chat.api.routers.agents import WebSocketChatConnection, conversation_state
from realtime_chat.api.schemas.chat import ChatTurn, ConversationState
from realtime_chat.services.session_directory import SessionDirectory
from realtime_chat.services.state_store import MemoryConversationStore
from tests.conftest import PNG_DATA_URL, FakeModelClient, build_test_container, build_test_request


def _build_app(store: MemoryConversationStore, client: FakeModelClient) -> tuple[FastAPI, SessionDirectory]:
    directory = SessionDirectory(store=store, model_client=client)
    app = FastAPI()
    app.include_router(api_router)
    app.state.container = build_test_container({SessionDirectory: directory})
    return app, directory


def test_websocket_sends_history_then_streams_reply(memory_store) -> None:
    asyncio.run(memory_store.save("abc", ConversationState(messages=[ChatTurn(role="user", content="earlier")])))
    app, directory = _build_app(memory_store, FakeModelClient(chat_outcomes=["one two three four"]))

    with TestClient(app) as client:
        with client.websocket_connect("/agents/chat-agent/abc") as websocket:
            assert websocket.receive_json() == {"type": "history", "messages": [{"role": "user", "content": "earlier"}]}

            websocket.send_text("{broken")
            websocket.send_text(json.dumps({"type": "user", "content": "hi"}))
            frames = [websocket.receive_json() for _ in range(5)]

    assert frames == [
        {"type": "assistant_start"},
        {"type": "assistant_chunk", "content": "one two three "},
        {"type": "assistant_chunk", "content": "four "},
        {"type": "assistant_done", "content": "one two three four"},
        {"type": "assistant", "content": "one two three four"},
    ]
    assert directory.active_count() == 0
    stored = asyncio.run(memory_store.load("abc")).messages
    assert [turn.content for turn in stored] == ["earlier", "hi", "one two three four"]


def test_websocket_reset_returns_empty_history(memory_store) -> None:
    asyncio.run(memory_store.save("abc", ConversationState(messages=[ChatTurn(role="user", content="earlier")])))
    app, _ = _build_app(memory_store, FakeModelClient())

    with TestClient(app) as client:
        with client.websocket_connect("/agents/chat-agent/abc") as websocket:
            websocket.receive_json()
            websocket.send_text(json.dumps({"type": "reset"}))
            assert websocket.receive_json() == {"type": "history", "messages": []}

    assert asyncio.run(memory_store.load("abc")).messages == []


def test_websocket_rejects_unknown_agent(memory_store) -> None:
    app, directory = _build_app(memory_store, FakeModelClient())

    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/agents/other-agent/abc"):
                pass

    assert exc_info.value.code == 1008
    assert directory.active_count() == 0


def test_websocket_on_unrouted_path_is_closed_with_policy_violation(memory_store) -> None:
    app, _ = _build_app(memory_store, FakeModelClient())

    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/somewhere/else"):
                pass

    assert exc_info.value.code == 1008


def test_state_endpoint_returns_full_history_with_wire_names(memory_store) -> None:
    turns = [ChatTurn(role="user", content="look", image_data_url=PNG_DATA_URL)] + [
        ChatTurn(role="assistant", content=f"m{i}") for i in range(60)
    ]
    asyncio.run(memory_store.save("abc", ConversationState(messages=turns)))
    app, _ = _build_app(memory_store, FakeModelClient())

    with TestClient(app) as client:
        response = client.get("/agents/chat-agent/abc")
        missing = client.get("/agents/other-agent/abc")

    assert response.status_code == 200
    messages = response.json()["messages"]
    assert len(messages) == 61
    assert messages[0] == {"role": "user", "content": "look", "imageDataUrl": PNG_DATA_URL}
    assert messages[1] == {"role": "assistant", "content": "m0"}
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_state_endpoint_resolves_directory_from_container(memory_store) -> None:
    directory = SessionDirectory(store=memory_store, model_client=FakeModelClient())
    request = build_test_request(build_test_container({SessionDirectory: directory}))

    response = await conversation_state("chat-agent", "fresh", request)  # type: ignore[arg-type]

    assert response.messages == []
    assert directory.active_count() == 0


class FakeWebSocket:
    def __init__(self, *, state: WebSocketState = WebSocketState.CONNECTED, error: Exception | None = None) -> None:
        self.application_state = state
        self._error = error
        self.sent: list[str] = []

    async def send_text(self, message: str) -> None:
        if self._error is not None:
            raise self._error
        self.sent.append(message)


@pytest.mark.asyncio
async def test_connection_drops_frames_after_peer_leaves() -> None:
    closed = WebSocketChatConnection(FakeWebSocket(state=WebSocketState.DISCONNECTED))  # type: ignore[arg-type]
    await closed.send("ignored")

    failing_socket = FakeWebSocket(error=RuntimeError('Cannot call "send" once a close message has been sent.'))
    failing = WebSocketChatConnection(failing_socket)  # type: ignore[arg-type]
    await failing.send("first")
    failing_socket._error = None
    await failing.send("second")

    assert failing_socket.sent == []

    live_socket = FakeWebSocket()
    live = WebSocketChatConnection(live_socket)  # type: ignore[arg-type]
    await live.send("hello")
    assert live_socket.sent == ["hello"]
