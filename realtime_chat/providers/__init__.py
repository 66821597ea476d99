"""Inference clients for the hosted chat and vision models."""

from realtime_chat.providers.base import (
    FALLBACK_VISION_MODEL,
    MAX_TOKENS,
    TEXT_MODEL,
    VISION_MODEL,
    ModelClient,
    ModelClientError,
    ModelReply,
    is_license_error,
    reply_from_payload,
)
from realtime_chat.providers.factory import build_model_client

__all__ = [
    "FALLBACK_VISION_MODEL",
    "MAX_TOKENS",
    "TEXT_MODEL",
    "VISION_MODEL",
    "ModelClient",
    "ModelClientError",
    "ModelReply",
    "build_model_client",
    "is_license_error",
    "reply_from_payload",
]
