from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from realtime_chat.api.router import api_router
from realtime_chat.core.logging import configure_logging
from realtime_chat.core.settings import get_settings
from realtime_chat.dependency_injection import build_container
from realtime_chat.providers.base import ModelClient
from realtime_chat.services.contracts import ConversationStoreProtocol

settings = get_settings()
configure_logging(settings.effective_log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "starting realtime chat",
        extra={"app_env": settings.app_env, "model_provider": settings.model_provider},
    )

    container = build_container(settings)
    store: ConversationStoreProtocol = container.resolve(ConversationStoreProtocol)
    await store.ping()
    logger.info("conversation store initialized", extra={"backend": settings.chat_state_backend})
    model_client: ModelClient = container.resolve(ModelClient)

    app.state.settings = settings
    app.state.container = container

    try:
        yield
    finally:
        await model_client.close()
        await store.close()
        logger.info("realtime chat shutdown complete")


app = FastAPI(
    title="Realtime Chat",
    version="0.1.0",
    docs_url="/docs" if settings.enable_swagger else None,
    redoc_url="/redoc" if settings.enable_swagger else None,
    openapi_url="/openapi.json" if settings.enable_swagger else None,
    lifespan=lifespan,
)

app.include_router(api_router)
# Registered last so the agent and health routes win over the asset catch-all.
app.mount("/", StaticFiles(directory=settings.static_dir, html=True, check_dir=False), name="static")
