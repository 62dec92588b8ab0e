"""
Application settings and configuration management.
Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import Environment, LogFormat


class Settings(BaseSettings):
    """Main application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Driver Ranking Engine"
    app_version: str = "1.0.0"
    environment: Environment = Environment.DEVELOPMENT

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.JSON

    # AHP
    consistency_threshold: float = Field(default=0.10, gt=0)
    reciprocal_tolerance: float = Field(default=1e-6, gt=0)

    # TOPSIS
    weight_sum_tolerance: float = Field(default=0.01, ge=0)

    # Eligibility filter (trip count / distance driven in the evaluated period)
    min_trip_count: int = Field(default=25, ge=0)
    min_distance_km: float = Field(default=250.0, ge=0)

    # Ties on the closeness coefficient are broken by this alternative attribute, descending
    tiebreak_field: str = "distance_km"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
