from __future__ import annotations

from typing import Literal

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AI_API_URL = "https://api.openrouter.ai/v1/chat/completions"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    # Checked when storage is first used, so the API can boot without them.
    SUPABASE_URL: AnyUrl | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    APP_ENV: str = "local"

    AI_API_URL: str = DEFAULT_AI_API_URL
    AI_API_KEY: str | None = None
    AI_MODEL: str = "gpt-3.5-turbo"
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 1500
    AI_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    AI_BACKOFF_SECONDS: float = Field(default=0.5, ge=0)
    AI_TIMEOUT_SECONDS: float = 60.0

    STORAGE_PROVIDER: Literal["supabase", "r2"] = "supabase"
    STORAGE_BUCKET: str = "public"

    FRONTEND_CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


settings = Settings()
