from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from env vars and local env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="local", alias="APP_ENV")
    log_level: str | None = Field(default=None, alias="LOG_LEVEL")

    model_provider: Literal["workers_ai", "openai", "mock"] = Field(default="workers_ai", alias="MODEL_PROVIDER")
    workers_ai_account_id: str | None = Field(default=None, alias="WORKERS_AI_ACCOUNT_ID")
    workers_ai_api_token: str | None = Field(default=None, alias="WORKERS_AI_API_TOKEN")
    workers_ai_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        alias="WORKERS_AI_BASE_URL",
    )
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    provider_timeout_seconds: float = Field(default=60.0, alias="MODEL_PROVIDER_TIMEOUT_SECONDS")
    mock_messages_file: str = Field(default="mock-data/assistant-messages.md", alias="MOCK_MESSAGES_FILE")

    chat_state_backend: Literal["redis", "memory"] = Field(default="redis", alias="CHAT_STATE_BACKEND")
    chat_state_redis_url: str = Field(default="redis://localhost:16379/0", alias="CHAT_STATE_REDIS_URL")
    chat_state_key_prefix: str = Field(default="chat:sessions", alias="CHAT_STATE_KEY_PREFIX")

    static_dir: str = Field(default="public", alias="STATIC_DIR")

    @property
    def enable_swagger(self) -> bool:
        return self.app_env.lower() == "local"

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "DEBUG" if self.app_env.lower() == "local" else "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
