"""Tests for environment-driven settings."""

import pytest
from core.config import Settings


def test_defaults():
    """Test the settings used when no overrides are set."""
    settings = Settings.from_env({})
    assert settings.refresh_interval_s == 60.0
    assert settings.debounce_s == 0.5
    assert settings.reconnect_max_s == 30.0
    assert settings.max_logs == 1000
    assert settings.api_url == "http://localhost:8080/api"
    assert settings.ws_url == "ws://localhost:8080/ws"


def test_env_overrides():
    """Test that environment variables override the defaults."""
    settings = Settings.from_env({
        "SLOTSYNC_BASE_URL": "https://bot.example:9443",
        "SLOTSYNC_MAX_LOGS": "200",
        "SLOTSYNC_DEBOUNCE_S": "0.25",
        "SLOTSYNC_LOG_LEVEL": "debug",
    })
    assert settings.ws_url == "wss://bot.example:9443/ws"
    assert settings.api_url == "https://bot.example:9443/api"
    assert settings.max_logs == 200
    assert settings.debounce_s == 0.25
    assert settings.log_level == "debug"


def test_invalid_number_names_variable():
    """Test that a bad numeric override names the offending variable."""
    with pytest.raises(ValueError, match="SLOTSYNC_PORT"):
        Settings.from_env({"SLOTSYNC_PORT": "eighty"})
