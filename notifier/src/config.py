"""Configuration management for the notification worker.

Uses Pydantic Settings for environment-based configuration.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseConfig(BaseSettings):
    """Supabase connection configuration."""

    url: str = Field(default="http://localhost:54321", description="Supabase project URL")
    key: str = Field(default="", description="Supabase anon or service-role key")
    jwt_secret: str = Field(default="", description="JWT secret used to sign access tokens")
    service_email: Optional[str] = Field(default=None, description="Worker sign-in email")
    service_password: Optional[str] = Field(default=None, description="Worker sign-in password")
    retry_attempts: int = Field(default=3, description="Attempts for repository reads", ge=1, le=10)

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")


class JobsConfig(BaseSettings):
    """Background job timing."""

    enabled: bool = Field(default=True, description="Run the periodic fleet checks")
    check_interval_seconds: int = Field(default=3600, description="Fleet check period", gt=0)
    dispatch_interval_seconds: int = Field(
        default=60, description="How often due scheduled notifications are delivered", gt=0
    )

    model_config = SettingsConfigDict(env_prefix="JOBS_")


class NotificationConfig(BaseSettings):
    """Notification content and calendar settings."""

    language: str = Field(default="el", description="Language for titles and bodies (el/en)")
    business_timezone: str = Field(default="Europe/Athens", description="Fleet local timezone")
    expiry_reminder_hour: int = Field(
        default=9, description="Local hour at which date-based reminders fire", ge=0, le=23
    )
    morning_briefing_hour: int = Field(default=8, ge=0, le=23)
    end_of_day_hour: int = Field(default=20, ge=0, le=23)
    weekend_planning_hour: int = Field(default=15, ge=0, le=23)
    milestone_contract_count: int = Field(default=100, description="Contract count milestone", gt=0)

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Validate language is one of the supported catalogs."""
        allowed = ["el", "en"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"language must be one of {allowed}, got: {v}")
        return v_lower


class Config(BaseSettings):
    """Main service configuration."""

    # Sub-configurations
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    # Service configuration
    service_name: str = Field(default="fleetos-notifier", description="Service name")
    environment: str = Field(default="development", description="Deployment environment")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json|text")
    metrics_port: int = Field(default=8001, description="Prometheus metrics port")

    # Tracing
    tracing_enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    tracing_otlp_endpoint: str = Field(default="http://otel-collector:4318/v1/traces")
    tracing_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower


# Global config instance
_config_instance: Config | None = None


def get_config() -> Config:
    """Get or create configuration instance.

    Returns:
        Config instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance
