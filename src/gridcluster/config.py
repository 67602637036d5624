"""
Centralized configuration management.
Uses environment variables with sensible defaults.
"""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with validation."""

    # Clustering configuration
    MAX_CLUSTER_RADIUS: float = 160.0  # display units (pixels)
    WEIGHT_PROPERTY: Optional[str] = None  # None = counts only
    SINGLETON_PASSTHROUGH: bool = True
    MERGE_STRATEGY: str = "single_pass"

    # Level range
    MIN_LEVEL: int = 0
    MAX_LEVEL: int = 20
    MAX_CLUSTER_LEVEL: Optional[int] = None  # None = cluster at every level

    # Web mercator meters per pixel at level 0 (256px tiles)
    BASE_RESOLUTION: float = 156543.03392804097

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[Path] = None

    class Config:
        env_prefix = "GRIDCLUSTER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
