"""
Unit tests for worker and API configuration.

Tests cover:
- Defaults and environment overrides
- Validation of enumerated settings
"""

import pytest
from pydantic import ValidationError

from api.src.config import Settings, clear_settings_cache, get_settings
from notifier.src.config import Config, JobsConfig, NotificationConfig, SupabaseConfig


class TestWorkerConfig:
    """Test notification worker settings"""

    def test_defaults(self):
        config = Config()

        assert config.service_name == "fleetos-notifier"
        assert config.notifications.business_timezone == "Europe/Athens"
        assert config.notifications.expiry_reminder_hour == 9
        assert config.jobs.check_interval_seconds == 3600

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://fleet.supabase.co")
        monkeypatch.setenv("JOBS_DISPATCH_INTERVAL_SECONDS", "15")
        monkeypatch.setenv("NOTIFY_LANGUAGE", "EN")

        assert SupabaseConfig().url == "https://fleet.supabase.co"
        assert JobsConfig().dispatch_interval_seconds == 15
        assert NotificationConfig().language == "en"

    def test_unsupported_language_rejected(self):
        with pytest.raises(ValidationError):
            NotificationConfig(language="de")

    def test_reminder_hour_bounds(self):
        with pytest.raises(ValidationError):
            NotificationConfig(expiry_reminder_hour=24)

    def test_log_level_normalized(self):
        assert Config(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            Config(log_level="verbose")


class TestApiSettings:
    """Test API settings"""

    @pytest.fixture(autouse=True)
    def fresh_settings(self):
        clear_settings_cache()
        yield
        clear_settings_cache()

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("FLEETOS_API_ENVIRONMENT", "Development")
        monkeypatch.setenv("FLEETOS_API_HISTORY_DEFAULT_LIMIT", "25")

        settings = get_settings()

        assert settings.is_development
        assert settings.history_default_limit == 25

    def test_short_jwt_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_secret="too-short")

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            Settings(jwt_algorithm="RS256")

    def test_fleet_checks_hosted_by_worker_only(self):
        """Test that only the worker runs the fleet checks out of the box"""
        assert Settings().jobs_enabled is False
        assert JobsConfig().enabled is True
