"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from calcflow.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test the default evaluation settings."""
        monkeypatch.delenv("CALCFLOW_STRICT_VARIABLES", raising=False)
        monkeypatch.delenv("CALCFLOW_DISPLAY_PRECISION", raising=False)
        settings = Settings(_env_file=None)
        assert settings.api_v1_prefix == "/api/v1"
        assert settings.strict_variables is False
        assert settings.display_precision == 4

    def test_environment_variables(self, monkeypatch):
        """Test values read from prefixed environment variables."""
        monkeypatch.setenv("CALCFLOW_STRICT_VARIABLES", "true")
        monkeypatch.setenv("CALCFLOW_MAX_BATCH_ROWS", "500")
        settings = Settings(_env_file=None)
        assert settings.strict_variables is True
        assert settings.max_batch_rows == 500

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test rejecting an unknown level."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="loud")

    def test_cors_origins_from_string(self):
        """Test comma-separated origins."""
        settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("field, value", [("max_batch_rows", 0), ("display_precision", 16)])
    def test_bounds(self, field, value):
        """Test numeric bounds."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_get_settings_is_cached(self):
        """Test that settings load once."""
        assert get_settings() is get_settings()
