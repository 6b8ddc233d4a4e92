"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="Rental Quote Assistant", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    assistant_name: str = Field(default="Maquinaria Pro", description="Persona name used in the policy prompt.")
    currency: str = Field(default="MXN", description="Currency code shown next to amounts.")
    timezone: str = Field(
        default="America/Mexico_City",
        description="Timezone used to resolve today's date for the classifier.",
    )
    quote_filename: str = Field(default="Rental_Quote.pdf", description="Filename of the quote document.")

    openrouter_api_key: str | None = Field(
        default=None,
        description="OpenRouter API key for intent classification.",
    )
    openrouter_model: str = Field(
        default="google/gemini-2.0-flash-001",
        description="OpenRouter model identifier.",
    )
    openrouter_referer: str | None = Field(
        default=None,
        description="Referer header required by OpenRouter (your app URL).",
    )
    openrouter_title: str | None = Field(
        default="Rental Quote Assistant",
        description="Title header sent to OpenRouter.",
    )
    openrouter_rate_limit_per_sec: float = Field(
        default=1.0,
        ge=0.1,
        description="Minimum interval (seconds) between OpenRouter API calls.",
    )

    telegram_bot_token: str | None = Field(default=None, description="Telegram bot token.")

    catalog_db_path: Path = Field(
        default=Path("../db/catalog.db"),
        description="SQLite file holding the rentable machines.",
    )

    google_calendar_id: str | None = Field(default=None, description="Calendar receiving rental reminders.")
    google_calendar_access_token: str | None = Field(
        default=None,
        description="OAuth access token for the Google Calendar API.",
    )
    calendar_timezone: str = Field(default="America/Caracas", description="Timezone of reminder events.")

    conversation_max_entries: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of conversations kept in memory.",
    )
    conversation_max_idle_seconds: float = Field(
        default=6 * 60 * 60,
        gt=0,
        description="Conversations idle for longer than this are evicted.",
    )

    classification_timeout_seconds: float = Field(default=30.0, gt=0, description="Reasoning service timeout.")
    collaborator_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for catalog, document and calendar calls.",
    )
    delivery_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for outbound messages.")
    side_effect_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempts for document rendering and calendar booking.",
    )
    side_effect_backoff_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Delay between side-effect attempts.",
    )

    @property
    def openrouter_enabled(self) -> bool:
        return bool(self.openrouter_api_key)

    @property
    def calendar_enabled(self) -> bool:
        return bool(self.google_calendar_id and self.google_calendar_access_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
