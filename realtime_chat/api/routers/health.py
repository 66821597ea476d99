import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from realtime_chat.dependency_injection import get_container
from realtime_chat.services.contracts import ConversationStoreProtocol

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    store: ConversationStoreProtocol = get_container(request).resolve(ConversationStoreProtocol)
    try:
        ready = await store.ping()
    except Exception:  # noqa: BLE001
        logger.warning("conversation store ping failed", exc_info=True)
        ready = False
    if not ready:
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(content={"status": "ok"})
