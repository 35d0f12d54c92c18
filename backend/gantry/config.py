"""
Runtime configuration for Gantry.

Values are read from the environment (prefix ``GANTRY_``) or a local ``.env``
file, e.g. ``GANTRY_DEBUG=true`` or ``GANTRY_QA_SCAN_PROJECT_IDS='["p1"]'``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GANTRY_",
        env_file=".env",
        extra="ignore",
    )

    debug: bool = False
    log_level: str | None = None
    log_json: bool = False

    # Background worker
    redis_url: str = "redis://localhost:6379/0"
    qa_scan_project_ids: list[str] = Field(default_factory=list)
    qa_scan_hour: int = Field(default=6, ge=0, le=23)
    qa_scan_minute: int = Field(default=0, ge=0, le=59)
    collaborators_factory: str = "gantry.repositories.memory:build_collaborators"

    # Timeline
    min_pixels_per_day: float = Field(default=4.0, gt=0)
    max_pixels_per_day: float = Field(default=120.0, gt=0)
    default_pixels_per_day: float = Field(default=30.0, gt=0)
    row_height: int = Field(default=60, gt=0)
    bar_height: int = Field(default=32, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached)."""
    return Settings()
