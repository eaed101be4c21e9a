"""
Unit tests for configuration module.

Tests settings loading, validation, nested configuration, and caching.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from pagecraft.config import (
    LLMSettings,
    LoggingSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)


class TestLLMSettings:
    """Test LLM configuration."""

    def test_defaults(self, monkeypatch):
        """Defaults target Gemini with page-sized output."""
        monkeypatch.delenv("LLM_GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("LLM_TEMPERATURE", raising=False)

        settings = LLMSettings()

        assert settings.default_provider == "google"
        assert settings.google_model == "gemini-2.5-flash"
        assert settings.temperature == 0.7
        assert settings.max_tokens == 8192

    def test_custom_llm_settings(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "openai")
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-custom-key-1234567890xyz")
        monkeypatch.setenv("LLM_OPENAI_MODEL", "gpt-4-turbo")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.2")

        settings = LLMSettings()

        assert settings.default_provider == "openai"
        assert settings.openai_model == "gpt-4-turbo"
        assert settings.temperature == 0.2

    def test_openai_key_requires_sk_prefix(self, monkeypatch):
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "invalid-key-1234567890abcdef")

        with pytest.raises(ValidationError, match="must start with 'sk-'"):
            LLMSettings()

    def test_empty_keys_are_treated_as_missing(self, monkeypatch):
        monkeypatch.setenv("LLM_GOOGLE_API_KEY", "")
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "")

        settings = LLMSettings()

        assert settings.google_api_key is None
        assert settings.openai_api_key is None

    def test_unknown_provider_rejected(self, monkeypatch):
        monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "anthropic")

        with pytest.raises(ValidationError):
            LLMSettings()

    def test_temperature_validation(self, monkeypatch):
        """Temperature must be between 0.0 and 2.0."""
        monkeypatch.setenv("LLM_TEMPERATURE", "3.0")

        with pytest.raises(ValidationError, match="less than or equal to 2"):
            LLMSettings()


class TestStorageSettings:
    def test_directory_from_environment(self, tmp_path):
        settings = StorageSettings()

        assert settings.directory == tmp_path / "storage"
        assert settings.backend == "file"
        assert settings.conversation_key == "last_conversation"

    def test_conversation_key_must_be_file_safe(self, monkeypatch):
        monkeypatch.setenv("STORAGE_CONVERSATION_KEY", "../escape")

        with pytest.raises(ValidationError):
            StorageSettings()

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")

        assert StorageSettings().backend == "memory"


class TestLoggingSettings:
    def test_invalid_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError):
            LoggingSettings()

    def test_configure_adds_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "pagecraft.log"
        settings = LoggingSettings(level="WARNING", file=log_file)

        with patch("pagecraft.config.logging.basicConfig") as basic_config:
            settings.configure()

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == logging.WARNING
        assert kwargs["force"] is True
        file_handlers = [h for h in kwargs["handlers"] if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert log_file.parent.is_dir()
        for handler in kwargs["handlers"]:
            handler.close()


class TestSettings:
    def test_nested_settings(self):
        settings = Settings()

        assert isinstance(settings.llm, LLMSettings)
        assert isinstance(settings.storage, StorageSettings)
        assert isinstance(settings.logging, LoggingSettings)
        assert settings.debug is False

    def test_debug_flag_from_environment(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")

        assert Settings().debug is True

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache_reloads(self, monkeypatch, tmp_path):
        first = get_settings()
        monkeypatch.setenv("STORAGE_DIRECTORY", str(tmp_path / "other"))
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.storage.directory == Path(tmp_path / "other")
