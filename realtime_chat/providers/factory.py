from __future__ import annotations

import logging

from realtime_chat.core.settings import Settings
from realtime_chat.providers.base import ModelClient
from realtime_chat.providers.mock_client import MockModelClient
from realtime_chat.providers.openai_client import OpenAICompatibleClient
from realtime_chat.providers.workers_ai_client import WorkersAIClient

logger = logging.getLogger(__name__)


def build_model_client(settings: Settings) -> ModelClient:
    """Create the inference client selected by ``MODEL_PROVIDER``."""

    if settings.model_provider == "mock":
        logger.info("using mock model client", extra={"messages_file": settings.mock_messages_file})
        return MockModelClient(messages_file=settings.mock_messages_file)

    if settings.model_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY required when MODEL_PROVIDER=openai")
        logger.info("using OpenAI-compatible model client", extra={"base_url": settings.openai_base_url})
        return OpenAICompatibleClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.provider_timeout_seconds,
        )

    if not settings.workers_ai_account_id or not settings.workers_ai_api_token:
        raise ValueError("WORKERS_AI_ACCOUNT_ID and WORKERS_AI_API_TOKEN required when MODEL_PROVIDER=workers_ai")
    logger.info("using Workers AI model client", extra={"base_url": settings.workers_ai_base_url})
    return WorkersAIClient(
        account_id=settings.workers_ai_account_id,
        api_token=settings.workers_ai_api_token,
        base_url=settings.workers_ai_base_url,
        timeout_seconds=settings.provider_timeout_seconds,
    )
