"""Library configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from attendance_session.core.constants import (
    DEFAULT_PATH_PREFIX,
    HTTP_TIMEOUT_SECONDS as DEFAULT_HTTP_TIMEOUT_SECONDS,
    LOCATION_FIX_TIMEOUT_SECONDS as DEFAULT_LOCATION_FIX_TIMEOUT_SECONDS,
    LOCATION_MAX_FIX_AGE_SECONDS as DEFAULT_LOCATION_MAX_FIX_AGE_SECONDS,
    ROLE_PATH_PREFIXES,
)


class Settings(BaseSettings):
    """Client settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Attendance API
    API_BASE_URL: str = "http://localhost:8080"
    API_ROLE: str = "user"  # user, brand; anything else uses the shared /api/v1 routes
    API_TOKEN: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    # Location
    LOCATION_FIX_TIMEOUT_SECONDS: float = DEFAULT_LOCATION_FIX_TIMEOUT_SECONDS
    LOCATION_MAX_FIX_AGE_SECONDS: int = DEFAULT_LOCATION_MAX_FIX_AGE_SECONDS

    # Environment
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = False

    @field_validator('API_BASE_URL')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so path joining never produces '//'."""
        return v.rstrip('/')

    @field_validator('API_ROLE', 'LOG_LEVEL')
    @classmethod
    def normalize_case(cls, v: str) -> str:
        return v.strip()

    @field_validator('HTTP_TIMEOUT_SECONDS', 'LOCATION_FIX_TIMEOUT_SECONDS')
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    def get_api_root(self) -> str:
        """
        Get the API root for the configured role.

        The server exposes the attendance routes under a per-role prefix;
        unknown roles fall back to the shared prefix.
        """
        prefix = ROLE_PATH_PREFIXES.get(self.API_ROLE.lower(), DEFAULT_PATH_PREFIX)
        return f"{self.API_BASE_URL}{prefix}"

    def validate_production_config(self) -> None:
        """Validate that production-critical settings are properly configured."""
        if self.ENVIRONMENT == "production":
            issues = []

            if not self.API_BASE_URL.startswith("https://"):
                issues.append("API_BASE_URL must use https in production")

            if not self.API_TOKEN:
                issues.append("API_TOKEN must be set in production")

            if issues:
                raise ValueError(
                    "Production configuration errors:\n" +
                    "\n".join(f"  - {issue}" for issue in issues)
                )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    settings = Settings()
    settings.validate_production_config()
    return settings
