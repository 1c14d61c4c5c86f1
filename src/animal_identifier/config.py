"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_GEMINI_MODELS = ["gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.0-flash"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    gemini_api_key: str
    gemini_models: list[str] = DEFAULT_GEMINI_MODELS
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    identification_location_in_prompt: bool = False
    inaturalist_base_url: str = "https://api.inaturalist.org/v1"
    reference_photo_ttl_seconds: int = 86400
    webhook_base_url: str | None = None
    polling_timeout_seconds: int = 30
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def webhook_url(base_url: str | None) -> str | None:
    """Return the Telegram webhook URL for a public base URL, if configured."""
    if base_url is None:
        return None
    cleaned = base_url.strip().rstrip("/")
    if not cleaned:
        return None
    return f"{cleaned}/telegram/webhook"
