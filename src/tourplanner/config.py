"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TOUR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Tour Planner"
    places_file: Optional[Path] = Field(
        default=None,
        description="CSV file with the working set of places. The built-in list is used when unset.",
    )
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "walking", "cycling"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel costs and route geometry.",
    )
    osrm_timeout_seconds: float = Field(default=30.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)
    matrix_cost_annotation: Literal["distance", "duration"] = Field(
        default="distance",
        description="Which OSRM table annotation fills the cost matrix (metres or seconds).",
    )
    matrix_max_concurrency: int = Field(
        default=1,
        ge=1,
        description="Origin queries in flight at once while building a cost matrix.",
    )
    maps_travel_mode: Literal["driving", "walking", "bicycling", "transit"] = Field(
        default="driving",
        description="Travel mode encoded into the shareable Google Maps link.",
    )

    @field_validator("places_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("osrm_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.rstrip("/") or None


settings = Settings()
