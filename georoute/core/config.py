from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "GeoRoute API"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_USER_AGENT: str = "GeoRoute/0.1 (+https://github.com/georoute)"
    GEOCODE_THROTTLE_SECONDS: float = 1.1
    GEOCODE_SEARCH_LIMIT: int = 10

    OSRM_URL: str = "https://router.project-osrm.org"
    REQUEST_TIMEOUT: int = 30

    DEFAULT_LOCALE: str = "en"
    ADDRESS_SCORE_THRESHOLD: int = 4

    DRIVING_DURATION_TOLERANCE: float = 0.2
    MARITIME_SEGMENT_KM: float = 500.0
    AIR_WAYPOINTS_DIRECT: int = 20
    AIR_WAYPOINTS_PER_LEG: int = 10

    DUPLICATE_TOLERANCE_DEG: float = 1e-4

    STORAGE_BACKEND: Literal["json", "redis", "memory"] = "json"
    STORAGE_DIR: str = ".georoute"
    REDIS_URL: str = "redis://localhost:6379/0"

    SERIALIZE_ROUTE_CALCULATIONS: bool = True

    @field_validator("NOMINATIM_URL", "OSRM_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("DRIVING_DURATION_TOLERANCE")
    @classmethod
    def check_tolerance(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("DRIVING_DURATION_TOLERANCE must be in [0, 1)")
        return v


settings = Settings()
