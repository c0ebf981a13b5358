"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator


def normalize_database_url(url: str) -> str:
    """Convert sqlite:// to sqlite+aiosqlite:// for async support"""
    if url and url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    APP_NAME: str = "Activity Webhook"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS
    # Comma-separated list of allowed origins. Empty disables CORS entirely.
    ALLOWED_ORIGINS: str = ""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./processed_activities.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        return normalize_database_url(v)

    # Strava API
    STRAVA_API_BASE_URL: str = "https://www.strava.com/api/v3"
    STRAVA_ACCESS_TOKEN: str = ""
    # Token echoed back by Strava during the subscription handshake
    STRAVA_VERIFY_TOKEN: str = ""
    STRAVA_TIMEOUT_SECONDS: float = 30.0

    # Retry settings (attempts include the first request)
    STRAVA_MAX_RETRIES: int = 3
    STRAVA_TRANSIENT_STATUS_CODES: str = "429,502,503,504"

    @field_validator("STRAVA_API_BASE_URL", mode="before")
    @classmethod
    def normalize_api_url(cls, v: str) -> str:
        return v.rstrip("/") if v else v

    @field_validator("STRAVA_MAX_RETRIES", mode="after")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """At least one attempt, otherwise no request is ever sent"""
        if v < 1:
            raise ValueError("STRAVA_MAX_RETRIES must be at least 1")
        return v

    # Activity rules
    TARGET_ACTIVITY_TYPE: str = "walk"
    RENAMED_ACTIVITY_NAME: str = "Rusty"
    GEOFENCE_MIN_LAT: float = 40.0
    GEOFENCE_MAX_LAT: float = 41.0
    GEOFENCE_MIN_LNG: float = -74.0
    GEOFENCE_MAX_LNG: float = -73.0

    # Rate limiting - webhooks
    WEBHOOK_RATE_LIMIT_MAX_REQUESTS: int = 100
    WEBHOOK_RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Admin endpoints - openssl rand -hex 32
    ADMIN_API_KEY: str = ""

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Cross-field validation.

        1. Geofence bounds must be ordered - raises ValueError at startup.
        2. Empty STRAVA_ACCESS_TOKEN - warning (activities cannot be fetched).
        3. Empty STRAVA_VERIFY_TOKEN - warning (handshake accepts any token).
        """
        import warnings

        if self.GEOFENCE_MIN_LAT > self.GEOFENCE_MAX_LAT:
            raise ValueError(
                f"GEOFENCE_MIN_LAT ({self.GEOFENCE_MIN_LAT}) is greater than "
                f"GEOFENCE_MAX_LAT ({self.GEOFENCE_MAX_LAT})"
            )
        if self.GEOFENCE_MIN_LNG > self.GEOFENCE_MAX_LNG:
            raise ValueError(
                f"GEOFENCE_MIN_LNG ({self.GEOFENCE_MIN_LNG}) is greater than "
                f"GEOFENCE_MAX_LNG ({self.GEOFENCE_MAX_LNG})"
            )

        if not self.STRAVA_ACCESS_TOKEN:
            warnings.warn(
                "STRAVA_ACCESS_TOKEN is empty - activities cannot be fetched or updated.",
                stacklevel=2,
            )

        if not self.STRAVA_VERIFY_TOKEN:
            warnings.warn(
                "STRAVA_VERIFY_TOKEN is empty - the subscription handshake is not verified.",
                stacklevel=2,
            )

        return self

    @property
    def transient_status_codes(self) -> set[int]:
        return {
            int(code.strip())
            for code in self.STRAVA_TRANSIENT_STATUS_CODES.split(",")
            if code.strip()
        }

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
