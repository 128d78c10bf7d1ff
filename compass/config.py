"""Application configuration and settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE_DIR = Path(__file__).resolve().parents[1]
_ENV_FILE = _BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # CORS
    ui_origin: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origin for UI",
    )

    # External APIs
    openai_api_key: str = Field(
        default="dummy-openai-api-key-for-tests",
        description="OpenAI API key for chat and vision collaborators",
    )
    openai_model: str = Field(
        default="gpt-4o-mini", description="OpenAI model for text prompts"
    )
    openai_vision_model: str = Field(
        default="gpt-4o-mini", description="OpenAI model for screenshot analysis"
    )
    google_maps_api_key: str = Field(
        default="dummy-google-maps-api-key-for-tests",
        description="Google Maps Platform API key for Places lookups",
    )
    maps_api_base: str = Field(
        default="https://maps.googleapis.com/maps/api",
        description="Base URL for Google Maps web services",
    )

    # Timeouts (seconds)
    soft_timeout_s: float = Field(
        default=8.0, description="Soft timeout for collaborator calls"
    )
    hard_timeout_s: float = Field(
        default=20.0, description="Hard timeout for collaborator calls"
    )

    # Retry Configuration
    retry_jitter_min_ms: int = Field(
        default=200, description="Minimum retry jitter in milliseconds"
    )
    retry_jitter_max_ms: int = Field(
        default=500, description="Maximum retry jitter in milliseconds"
    )

    # Circuit Breaker
    breaker_failure_threshold: int = Field(
        default=5, description="Failures before circuit breaker opens"
    )
    breaker_timeout_s: int = Field(
        default=60, description="Circuit breaker failure window in seconds"
    )
    breaker_half_open_s: int = Field(
        default=30, description="Seconds an open breaker waits before a trial call"
    )

    # Cache TTLs (hours)
    places_ttl_hours: int = Field(
        default=24, description="Places lookup cache TTL in hours"
    )

    # Planning constants
    cluster_radius_km: float = Field(
        default=3.0, description="Radius around a cluster seed in kilometres"
    )
    urban_speed_kmh: float = Field(
        default=15.0, description="Effective urban travel speed (walk + transit)"
    )
    min_travel_minutes: int = Field(
        default=10, description="Lower bound for travel time between stops"
    )
    missing_coords_travel_minutes: int = Field(
        default=20, description="Flat travel time when a stop has no coordinates"
    )
    rest_break_every: int = Field(
        default=3, description="Insert a rest break before every Nth stop"
    )
    rest_break_minutes: int = Field(default=20, description="Rest break length")
    pois_per_day: int = Field(
        default=5, description="Target number of stops per day"
    )
    packed_day_minutes: int = Field(
        default=600, description="Day length above which a warning is emitted"
    )
    default_center_lat: float = Field(
        default=35.6762, description="Latitude used for mock places"
    )
    default_center_lng: float = Field(
        default=139.6503, description="Longitude used for mock places"
    )

    # Uploads
    max_upload_files: int = Field(default=15, description="Max screenshots per plan")
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size of one screenshot in bytes"
    )

    @field_validator("cluster_radius_km", "urban_speed_kmh", mode="after")
    @classmethod
    def _positive(cls, value: float) -> float:
        """Reject non-positive distances and speeds."""
        if value <= 0:
            raise ValueError("must be positive")
        return value


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


class MissingAPIKeyError(RuntimeError):
    """Raised when a collaborator API key is not configured."""


def _validated_key(value: str, env_name: str) -> str:
    api_key = (value or "").strip()
    if not api_key or api_key.startswith("dummy-"):
        raise MissingAPIKeyError(
            f"{env_name} is not configured. "
            f"Set {env_name} in your environment (.env) to enable this collaborator."
        )
    return api_key


def get_openai_api_key(settings: Settings | None = None) -> str:
    """Return a validated OpenAI API key or raise a helpful error."""
    settings = settings or get_settings()
    return _validated_key(settings.openai_api_key, "OPENAI_API_KEY")


def get_google_maps_api_key(settings: Settings | None = None) -> str:
    """Return a validated Google Maps key or raise a helpful error."""
    settings = settings or get_settings()
    return _validated_key(settings.google_maps_api_key, "GOOGLE_MAPS_API_KEY")
