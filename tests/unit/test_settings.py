"""Tests for runtime settings and logging setup."""

import pytest
import structlog

from well.config import DEFAULT_SETTINGS, WellSettings
from well.logging_config import configure_logging


class TestWellSettings:
    def test_defaults(self):
        assert DEFAULT_SETTINGS.pump_update_budget_s == 0.05
        assert DEFAULT_SETTINGS.log_level == "INFO"
        assert DEFAULT_SETTINGS.api_port == 8000

    def test_from_env_defaults(self, monkeypatch):
        for name in (
            "WELL_PUMP_UPDATE_BUDGET_S",
            "WELL_LOG_LEVEL",
            "WELL_API_HOST",
            "WELL_API_PORT",
            "WELL_API_DEBUG",
        ):
            monkeypatch.delenv(name, raising=False)
        assert WellSettings.from_env() == WellSettings()

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WELL_PUMP_UPDATE_BUDGET_S", "0.25")
        monkeypatch.setenv("WELL_LOG_LEVEL", "debug")
        monkeypatch.setenv("WELL_API_PORT", "9000")
        monkeypatch.setenv("WELL_API_DEBUG", "yes")

        settings = WellSettings.from_env()

        assert settings.pump_update_budget_s == 0.25
        assert settings.log_level == "DEBUG"
        assert settings.api_port == 9000
        assert settings.api_debug is True

    @pytest.mark.parametrize("raw", ["none", "off", ""])
    def test_budget_disabled(self, monkeypatch, raw):
        monkeypatch.setenv("WELL_PUMP_UPDATE_BUDGET_S", raw)
        assert WellSettings.from_env().pump_update_budget_s is None


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_level_name(self):
        configure_logging("debug")
        structlog.get_logger().debug("test_event", value=1)

    def test_level_number(self):
        configure_logging(30)

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("CHATTY")
