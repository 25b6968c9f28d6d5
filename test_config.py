"""
test_config.py

Tests for environment-driven settings and logging setup.
"""

import pytest
import structlog
from pagecontract import Capability, Settings, configure_logging, get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test default values without environment overrides."""
        monkeypatch.delenv("PAGECONTRACT_LOG_LEVEL", raising=False)
        monkeypatch.delenv("PAGECONTRACT_SUSPICIOUS_SELECTOR_TOKENS", raising=False)
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.suspicious_selector_tokens == ["><", "<<"]

    def test_environment_overrides(self, monkeypatch):
        """Test PAGECONTRACT_ variables override defaults."""
        monkeypatch.setenv("PAGECONTRACT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PAGECONTRACT_LOG_JSON", "false")
        settings = Settings()
        assert settings.log_level == "DEBUG"
        assert settings.log_json is False

    def test_get_settings_is_cached(self, fresh_settings):
        """Test get_settings() returns one shared instance."""
        assert get_settings() is get_settings()

    def test_selector_tokens_drive_capability_warnings(self, monkeypatch, fresh_settings):
        """Test configured tokens change the selector heuristic."""
        monkeypatch.setenv("PAGECONTRACT_SUSPICIOUS_SELECTOR_TOKENS", '["::"]')
        odd = Capability.create("c1", "odd", "action", "Odd selector", "a::b")
        markup = Capability.create("c2", "markup", "action", "Markup selector", "div><span")

        assert odd.validate().warnings == ("Primary selector may not be valid CSS",)
        assert markup.validate().warnings == ()


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestLogging:
    """Tests for logging configuration."""

    def test_console_renderer_when_json_disabled(self, reset_structlog):
        """Console output is used when log_json is off."""
        configure_logging(Settings(log_level="DEBUG", log_json=False))
        assert structlog.is_configured()
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_json_renderer_by_default(self, reset_structlog):
        """JSON output is the default renderer."""
        configure_logging(Settings())
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)

