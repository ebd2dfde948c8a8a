"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- API settings (prefix, CORS)
- Authentication (Supabase access token verification)
- Background job hosting
- Logging and monitoring

All settings support environment variable overrides and .env file loading.
Notification engine settings (Supabase URL, timezone, language) are read
by ``notifier.src.config``.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "FLEETOS_API_" (e.g., FLEETOS_API_JWT_SECRET).
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="FleetOS Notifications API",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api/v1",
        description="API URL prefix"
    )
    environment: str = Field(
        default="production",
        description="Environment: development|staging|production"
    )
    host: str = Field(default="0.0.0.0", description="API bind host")
    port: int = Field(default=8000, description="API bind port", gt=0, lt=65536)

    # =========================================================================
    # Authentication Settings
    # =========================================================================

    jwt_secret: str = Field(
        default="change-this-supabase-jwt-secret-in-production-min-32",
        description="Supabase project JWT secret used to verify access tokens",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="Access token signing algorithm"
    )
    jwt_audience: str = Field(
        default="authenticated",
        description="Expected audience claim of Supabase access tokens"
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(default=True, description="Enable CORS middleware")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8081"],
        description="Allowed CORS origins (web dashboard, mobile dev server)"
    )

    # =========================================================================
    # Background Jobs
    # =========================================================================

    # Only one process per deployment may run the fleet checks
    jobs_enabled: bool = Field(
        default=False,
        description="Also run the periodic fleet checks in the API process"
    )

    # =========================================================================
    # Logging & Monitoring
    # =========================================================================

    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json|text")
    metrics_enabled: bool = Field(default=True, description="Expose /metrics")
    tracing_enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    tracing_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        description="OTLP/HTTP traces endpoint"
    )
    tracing_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    history_default_limit: int = Field(
        default=100,
        description="Default page size for notification history",
        gt=0,
        le=1000
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Supabase signs access tokens with an HMAC secret."""
        allowed = ["HS256", "HS384", "HS512"]
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {allowed}, got: {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="FLEETOS_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Cached settings instance
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
