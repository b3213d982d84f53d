"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (MAPENGINE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="MAPENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Map SDK loader
    maps_api_key: str = ""
    maps_version: str = "weekly"
    maps_region: Optional[str] = None
    maps_language: Optional[str] = None
    maps_auth_referrer_policy: Optional[str] = None
    maps_libraries: list[str] = ["maps", "marker"]

    # Smooth zoom
    zoom_step_delay: float = 0.03  # seconds between scheduling and issuing a step
    min_zoom: int = 0
    max_zoom: int = 22

    # Change notification
    event_queue_size: int = 100


settings = Settings()
