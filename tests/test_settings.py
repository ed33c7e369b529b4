"""
Tests for settings module.

Tests settings validation and environment variable loading.
"""
from __future__ import annotations

import pytest

from pastila.settings import (
    DEFAULT_CLICKHOUSE_URL,
    DEFAULT_EDITOR,
    DEFAULT_PASTILA_URL,
    Settings,
    create_settings_from_env,
)


class TestSettings:
    """Test Settings dataclass validation."""

    def test_defaults(self):
        settings = Settings()

        assert settings.pastila_url == "https://pastila.nl/"
        assert settings.clickhouse_url == "https://play.clickhouse.com/?user=paste"
        assert settings.editor == "vi"
        assert settings.user_agent == "PastilaCLI/1.0"
        assert settings.http_timeout_s is None
        assert settings.quick_exit_threshold_s == 1.0

    def test_local_clickhouse_url(self):
        settings = Settings(clickhouse_url="http://localhost:32768/?user=default")
        assert settings.clickhouse_url == "http://localhost:32768/?user=default"

    @pytest.mark.parametrize("field,value,message", [
        ("pastila_url", "", "pastila_url is required"),
        ("pastila_url", "not a url", "Invalid pastila_url format"),
        ("clickhouse_url", "ftp://clickhouse", "Invalid clickhouse_url format"),
        ("clickhouse_url", "", "clickhouse_url is required"),
        ("editor", "  ", "editor is required"),
        ("user_agent", "", "user_agent is required"),
        ("http_timeout_s", 0, "http_timeout_s must be positive"),
        ("poll_interval_s", 0, "poll_interval_s must be positive"),
        ("quick_exit_threshold_s", -1, "quick_exit_threshold_s must be non-negative"),
    ])
    def test_invalid_values_raise(self, field, value, message):
        with pytest.raises(ValueError, match=message):
            Settings(**{field: value})

    def test_frozen(self):
        settings = Settings()
        with pytest.raises(AttributeError):
            settings.editor = "nano"  # type: ignore[misc]


class TestSettingsFromEnv:
    """Test create_settings_from_env."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PASTILA_URL", "https://paste.example.com/")
        monkeypatch.setenv("PASTILA_CLICKHOUSE_URL", "http://localhost:8123/?user=default")
        monkeypatch.setenv("EDITOR", "code --wait")
        monkeypatch.setenv("PASTILA_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("PASTILA_POLL_INTERVAL", "0.1")

        settings = create_settings_from_env()

        assert settings.pastila_url == "https://paste.example.com/"
        assert settings.clickhouse_url == "http://localhost:8123/?user=default"
        assert settings.editor == "code --wait"
        assert settings.http_timeout_s == 2.5
        assert settings.poll_interval_s == 0.1

    def test_empty_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("PASTILA_URL", "")
        monkeypatch.setenv("PASTILA_CLICKHOUSE_URL", "")
        monkeypatch.setenv("EDITOR", "")

        settings = create_settings_from_env()

        assert settings.pastila_url == DEFAULT_PASTILA_URL
        assert settings.clickhouse_url == DEFAULT_CLICKHOUSE_URL
        assert settings.editor == DEFAULT_EDITOR

    def test_bad_number_raises(self, monkeypatch):
        monkeypatch.setenv("PASTILA_HTTP_TIMEOUT", "soon")

        with pytest.raises(ValueError, match="PASTILA_HTTP_TIMEOUT"):
            create_settings_from_env()

    def test_fresh_instance_each_call(self):
        assert create_settings_from_env() is not create_settings_from_env()
