"""Tests for logger configuration and event processing."""

import pytest

from toolkit.core.logger import BusinessRulesProcessor, LoggerConfig, LoggerError, LogIcon, LogLevel
from toolkit.core.settings import settings


class TestLoggerConfig:
    """Tests for LoggerConfig defaults."""

    def test_level_follows_settings(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "LOG_LEVEL", "ERROR")
        assert LoggerConfig().log_level == LogLevel.ERROR

    def test_debug_follows_settings(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "DEBUG", False)
        assert LoggerConfig().debug is False

    def test_explicit_level_wins(self) -> None:
        assert LoggerConfig(log_level=LogLevel.DEBUG).log_level == LogLevel.DEBUG


class TestBusinessRulesProcessor:
    """Tests for BusinessRulesProcessor."""

    def test_uppercases_and_truncates(self) -> None:
        event_dict = BusinessRulesProcessor(debug=False)(None, "info", {"event": "x" * 100})
        assert event_dict["event"] == "X" * 80

    def test_icon_prepended_in_debug(self) -> None:
        event_dict = BusinessRulesProcessor(debug=True)(None, "info", {"event": "stored", "icon": LogIcon.FILE})
        assert event_dict["event"] == f"{LogIcon.FILE.value} STORED"
        assert "icon" not in event_dict

    def test_invalid_icon_raises(self) -> None:
        with pytest.raises(LoggerError):
            BusinessRulesProcessor(debug=True)(None, "info", {"event": "x", "icon": "not-an-icon"})
