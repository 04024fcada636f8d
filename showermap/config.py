"""
Configuration management for the ShowerMap location pipeline.

Uses pydantic-settings for type-safe configuration with environment variable support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Ingestion and output settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directories
    data_input_dir: Path = Field(default=Path("./data"))
    data_output_dir: Path = Field(default=Path("./processed"))

    # Only files matching this pattern are read from the input directory
    input_pattern: str = "city_*.json"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @field_validator("data_input_dir", "data_output_dir", mode="before")
    @classmethod
    def ensure_path(cls, v):
        """Convert string to Path."""
        return Path(v)


class DedupSettings(BaseSettings):
    """Deduplication settings."""

    model_config = SettingsConfigDict(
        env_prefix="DEDUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Full six-phase rounds to run before giving up on reaching a fixpoint
    max_rounds: int = 10


class GeocoderSettings(BaseSettings):
    """Geocoding provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="GEOCODER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "ShowerMapGeocoder/1.0 (data-cleanup)"
    country_codes: str = "us"

    request_delay: float = 1.1  # seconds between any two requests (fair-use limit)
    max_attempts: int = 3
    retry_backoff: float = 2.0  # seconds, multiplied by the attempt number
    timeout: float = 30.0  # seconds

    min_confidence: float = 0.1


class Settings(BaseSettings):
    """Main settings class that combines all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-settings
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    geocoder: GeocoderSettings = Field(default_factory=GeocoderSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience function for quick access
settings = get_settings()
