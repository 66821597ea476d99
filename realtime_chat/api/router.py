from fastapi import APIRouter

from realtime_chat.api.routers.agents import router as agents_router
from realtime_chat.api.routers.agents import unmatched_socket_router
from realtime_chat.api.routers.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(agents_router)
api_router.include_router(unmatched_socket_router)
