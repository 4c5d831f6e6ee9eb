"""
CivicEye AI - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Gemini (classification and reverse geocoding)
    gemini_api_key: Optional[str] = None
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model_id: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.2

    # External call timeouts
    classifier_timeout_seconds: float = 30.0
    geocode_timeout_seconds: float = 15.0
    device_location_timeout_seconds: float = 10.0

    # Uploads
    max_image_bytes: int = 5 * 1024 * 1024
    exif_location_accuracy_m: float = 5.0

    # Authority side
    evidence_base_url: str = "https://storage.googleapis.com/civic-eye/evidence"
    review_action_delay_seconds: float = 1.0
    review_action_max_retries: int = 3
    review_action_backoff_seconds: float = 0.5

    # Submissions without any resolved location fall back to (0, 0) only when enabled
    allow_unlocated_reports: bool = False

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
