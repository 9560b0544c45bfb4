"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    media_base_url: str
    media_api_key: str | None = None
    render_width: int = 800
    render_height: int = 800
    prefetch_lagging_margin: int = 2
    prefetch_leading_margin: int = 5
    fire_interval_seconds: float = 0.8
    fire_streak_required: int = 3
    velocity_window_seconds: float = 60.0
    delete_milestones: str | None = None
    storage_milestones_mb: str | None = None
    size_estimator: str = "reported"
    timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_thresholds(raw: str | None) -> tuple[float, ...] | None:
    """Parse a comma separated list of milestone thresholds from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if not cleaned:
        return None
    values: set[float] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        try:
            parsed = float(value)
        except ValueError:
            continue
        if parsed > 0:
            values.add(parsed)
    return tuple(sorted(values)) or None
