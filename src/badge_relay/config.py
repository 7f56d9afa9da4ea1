"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    console_password: str
    badges_url: str = "https://growing-badges.lovable.app"
    photos_bucket: str = "photos"
    photos_table: str = "photos"
    photo_list_limit: int = 100
    signed_url_ttl_seconds: int = 900
    dispatch_min_interval_seconds: float = 2.0
    device_state_path: str = ".badge_relay/device.json"
    browser_headless: bool = False
    realtime_enabled: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
