"""
Tests for portal settings.
"""

import pytest
from pydantic import ValidationError

from portal.core.config import Settings


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MOCK_DELAY_MS", raising=False)

        settings = Settings(_env_file=None)

        assert settings.session_ttl_hours == 8.0
        assert settings.session_storage_key == "authority_auth"
        assert settings.mode_storage_key == "authority_mock_mode"
        assert settings.default_simulated_mode is True
        assert settings.default_simulated_identifier == "admin@demo.local"
        assert settings.mock_delay_ms == 500
        assert settings.simulator_interval_seconds == 15.0
        assert settings.simulator_probability == 0.2
        assert settings.live_api_url == "http://localhost:8001"
        assert settings.enforce_permissions is True

    def test_computed_values(self):
        settings = Settings(_env_file=None, session_ttl_hours=2, mock_delay_ms=250)

        assert settings.session_ttl_seconds == 7200
        assert settings.mock_delay_seconds == 0.25


class TestSettingsEnvironment:
    """Tests for environment variable loading."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LIVE_API_URL", "https://portal.example.gov")
        monkeypatch.setenv("SIMULATOR_PROBABILITY", "0.5")
        monkeypatch.setenv("ENFORCE_PERMISSIONS", "false")

        settings = Settings(_env_file=None)

        assert settings.live_api_url == "https://portal.example.gov"
        assert settings.simulator_probability == 0.5
        assert settings.enforce_permissions is False

    def test_log_format_is_normalised(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "JSON")

        assert Settings(_env_file=None).log_format == "json"


class TestSettingsValidation:
    """Tests for validators."""

    def test_probability_out_of_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, simulator_probability=1.5)

    def test_non_positive_ttl(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, session_ttl_hours=0)

    def test_unknown_log_format(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_negative_delay(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, mock_delay_ms=-1)
