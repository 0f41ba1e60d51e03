"""
Configuration management for the booking backend.

All tunables of the availability and allocation engine live here so the
default booking duration, slot granularity and cache lifetimes are defined
exactly once and threaded through every service.
"""

from typing import List, Optional
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Database Configuration
    database_url: str = "sqlite:///./data/bookings.db"
    data_access_timeout_seconds: int = 10
    log_sql_queries: bool = False
    slow_query_threshold_seconds: float = 1.0

    # Redis Configuration (distributed allocation locks)
    redis_url: Optional[str] = None

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Booking defaults
    default_duration_minutes: int = 120
    slot_granularity_minutes: int = 15
    large_party_threshold: int = 7

    # Alternative time suggestions
    alternative_search_minutes: int = 120  # +/- window around requested time
    max_suggested_times: int = 3
    default_service_open: str = "10:00"  # used when a venue has no windows
    default_service_close: str = "22:00"

    # Availability cache
    availability_cache_enabled: bool = True
    availability_cache_max_size: int = 500
    date_availability_ttl_seconds: int = 600
    time_slot_ttl_seconds: int = 120
    date_range_ttl_seconds: int = 600
    availability_date_batch_size: int = 14

    # Allocation and holds
    allocation_lock_timeout_seconds: int = 10
    allocation_conflict_retries: int = 1
    slot_hold_minutes: int = 10

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("slot_granularity_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive_minutes(cls, v):
        if v <= 0:
            raise ValueError("Minute values must be positive")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def redis_enabled(self) -> bool:
        """Check if Redis is configured for allocation locks."""
        return self.redis_url is not None


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


# Export settings instance for easy import
settings = get_settings()
