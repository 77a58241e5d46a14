"""
Application Configuration Module.

Settings for the portal core loaded with Pydantic Settings v2:
- Environment variable support (and ``.env``)
- Session and storage parameters
- Simulated backend latency and event simulator tuning
- Live backend addressing
"""

from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """
    Portal settings loaded from environment variables.

    Defaults describe a standalone demo: simulated mode, in-memory storage,
    half a second of synthetic latency.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ========================================================================
    # APPLICATION
    # ========================================================================

    app_name: str = Field(default="Authority Portal", alias="APP_NAME")
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ========================================================================
    # SESSION
    # ========================================================================

    session_ttl_hours: float = Field(default=8.0, alias="SESSION_TTL_HOURS")
    storage_path: Optional[str] = Field(
        default=None,
        alias="STORAGE_PATH",
        description="JSON file backing client storage (in-memory if unset)",
    )
    session_storage_key: str = Field(
        default="authority_auth",
        alias="SESSION_STORAGE_KEY",
    )
    mode_storage_key: str = Field(
        default="authority_mock_mode",
        alias="MODE_STORAGE_KEY",
    )
    default_simulated_mode: bool = Field(
        default=True,
        alias="DEFAULT_SIMULATED_MODE",
    )
    default_simulated_identifier: str = Field(
        default="admin@demo.local",
        alias="DEFAULT_SIMULATED_IDENTIFIER",
        description="Identity auto-logged-in when switching to simulated mode",
    )

    @field_validator("session_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        """Session TTL must be positive."""
        if v <= 0:
            raise ValueError("session_ttl_hours must be positive")
        return v

    # ========================================================================
    # SIMULATED BACKEND
    # ========================================================================

    mock_delay_ms: int = Field(default=500, alias="MOCK_DELAY_MS", ge=0)
    simulator_interval_seconds: float = Field(
        default=15.0,
        alias="SIMULATOR_INTERVAL_SECONDS",
        gt=0,
    )
    simulator_probability: float = Field(
        default=0.2,
        alias="SIMULATOR_PROBABILITY",
    )

    @field_validator("simulator_probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        """Probability is a fraction."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("simulator_probability must be between 0 and 1")
        return v

    # ========================================================================
    # LIVE BACKEND
    # ========================================================================

    live_api_url: str = Field(
        default="http://localhost:8001",
        alias="LIVE_API_URL",
        description="Base URL of the live portal API",
    )
    live_timeout_seconds: float = Field(
        default=30.0,
        alias="LIVE_TIMEOUT_SECONDS",
    )

    # ========================================================================
    # AUTHORIZATION
    # ========================================================================

    enforce_permissions: bool = Field(
        default=True,
        alias="ENFORCE_PERMISSIONS",
        description="Check capabilities before data-access mutations",
    )

    # ========================================================================
    # OBSERVABILITY
    # ========================================================================

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")  # json or console

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v

    # ========================================================================
    # COMPUTED PROPERTIES
    # ========================================================================

    @computed_field
    @property
    def session_ttl_seconds(self) -> float:
        """Session TTL in seconds."""
        return self.session_ttl_hours * 3600

    @computed_field
    @property
    def mock_delay_seconds(self) -> float:
        """Simulated latency in seconds."""
        return self.mock_delay_ms / 1000

    @computed_field
    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    settings = Settings()

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        simulated_by_default=settings.default_simulated_mode,
        live_api_url=settings.live_api_url,
    )

    return settings


# Global settings instance
settings = get_settings()
