"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    generation_base_url: str = "http://localhost:3000"
    photo_base_url: str | None = None
    api_token: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    poll_interval_seconds: float = 2.5
    request_timeout_seconds: float = 15.0
    draft_dir: str = ".drafts"
    draft_debounce_seconds: float = 0.35
    sanitizer_fail_closed: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def resolved_photo_base_url(self) -> str:
        """Photo lookups default to the generation service host."""
        return self.photo_base_url or self.generation_base_url

    @property
    def uses_supabase_photos(self) -> bool:
        """Return true when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
