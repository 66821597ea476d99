import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from realtime_chat.api.schemas.chat import ConversationStateResponse
from realtime_chat.dependency_injection import get_container
from realtime_chat.services.session_directory import SessionDirectory

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/agents", tags=["agents"])

CHAT_AGENT_NAME = "chat-agent"


class WebSocketChatConnection:
    """Chat connection over a FastAPI WebSocket that drops frames once the peer is gone."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    async def send(self, message: str) -> None:
        if self._closed or self._websocket.application_state != WebSocketState.CONNECTED:
            logger.debug("dropping frame for closed connection")
            return
        try:
            await self._websocket.send_text(message)
        except (WebSocketDisconnect, RuntimeError):
            self._closed = True
            logger.debug("peer went away while sending frame")


@router.websocket("/{agent}/{session_id}")
async def chat_socket(websocket: WebSocket, agent: str, session_id: str) -> None:
    """
    Attach a browser to the chat session named by ``session_id``.

    History is pushed on connect; each text frame is handled in arrival order. Replies
    keep being generated and persisted even if the socket closes mid-stream.
    """
    if agent != CHAT_AGENT_NAME:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    directory: SessionDirectory = get_container(websocket).resolve(SessionDirectory)
    await websocket.accept()
    connection = WebSocketChatConnection(websocket)
    logger.info("chat connection opened", extra={"session_id": session_id})

    async with directory.session(session_id) as session:
        await session.on_connect(connection)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                continue
            await session.on_message(connection, text)

    logger.info("chat connection closed", extra={"session_id": session_id})


@router.get(
    "/{agent}/{session_id}",
    response_model=ConversationStateResponse,
    response_model_exclude_none=True,
    summary="Read the persisted conversation for a session",
)
async def conversation_state(agent: str, session_id: str, request: Request) -> ConversationStateResponse:
    if agent != CHAT_AGENT_NAME:
        raise HTTPException(status_code=404, detail=f"Unknown agent '{agent}'")

    directory: SessionDirectory = get_container(request).resolve(SessionDirectory)
    async with directory.session(session_id) as session:
        state = await session.state()
    return ConversationStateResponse(messages=state.messages)


unmatched_socket_router = APIRouter()


@unmatched_socket_router.websocket("/{path:path}")
async def reject_unmatched_socket(websocket: WebSocket, path: str) -> None:
    # Registered after every real route; the static mount only speaks HTTP.
    logger.debug("rejecting websocket for unknown path", extra={"path": path})
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
