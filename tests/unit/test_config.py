"""Unit tests for configuration module."""

from pathlib import Path

import pytest

from email_thread_engine.config import Settings, get_settings


class TestSettings:
    """Test suite for Settings class."""

    def test_default_settings(self) -> None:
        """Test that default settings are properly initialized."""
        settings = Settings()

        assert settings.db_path == Path("emails.sqlite3")
        assert settings.default_page_size == 20
        assert settings.max_page_size == 100
        assert settings.log_level == "INFO"
        assert settings.debug is False

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading settings from environment variables."""
        monkeypatch.setenv("EMAIL_ENGINE_DB_PATH", "/tmp/mail.sqlite3")
        monkeypatch.setenv("EMAIL_ENGINE_DEFAULT_PAGE_SIZE", "50")
        monkeypatch.setenv("EMAIL_ENGINE_LOG_LEVEL", "debug")
        monkeypatch.setenv("EMAIL_ENGINE_DEBUG", "true")

        # Clear the cache to ensure fresh settings
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.db_path == Path("/tmp/mail.sqlite3")
        assert settings.default_page_size == 50
        assert settings.log_level == "DEBUG"
        assert settings.debug is True

        # Clean up
        get_settings.cache_clear()

    def test_get_settings_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same cached instance."""
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

        # Clean up
        get_settings.cache_clear()

    def test_invalid_log_level(self) -> None:
        with pytest.raises(Exception):  # Pydantic ValidationError
            Settings(log_level="LOUD")

    def test_default_page_size_cannot_exceed_max(self) -> None:
        with pytest.raises(Exception):  # Pydantic ValidationError
            Settings(default_page_size=200, max_page_size=100)
