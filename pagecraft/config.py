"""
PageCraft Settings

Environment-driven configuration built on pydantic-settings. Each concern
reads its own prefix (``LLM_``, ``STORAGE_``, ``LOG_``) and a ``.env`` file in
the working directory.

Usage:
    from pagecraft.config import get_settings

    settings = get_settings()
    settings.llm.default_provider      # "google"
    settings.storage.directory         # ~/.pagecraft
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["google", "openai", "local"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_STORAGE_DIR = Path.home() / ".pagecraft"
_DOTENV_PATH = Path.cwd() / ".env"


def _section(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(env_prefix=prefix, env_file=".env", extra="ignore")


class LLMSettings(BaseSettings):
    """Which model writes the pages, and how."""

    model_config = _section("LLM_")

    default_provider: ProviderName = Field(default="google", description="Generation backend")

    google_api_key: str | None = Field(None, description="Gemini API key")
    google_model: str = Field(default="gemini-2.5-flash", description="Gemini model name")

    openai_api_key: str | None = Field(None, min_length=20, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model name")

    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama or OpenAI-compatible server URL",
    )
    local_model: str = Field(default="llama3.1:8b", description="Model served locally")

    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(
        default=8192,
        gt=0,
        le=65536,
        description="Output token cap for one page",
    )
    timeout: int = Field(default=120, gt=0, description="Seconds before a stream is abandoned")

    @field_validator("google_api_key", "openai_api_key", mode="before")
    @classmethod
    def blank_key_is_unset(cls, v: str | None) -> str | None:
        return None if v == "" else v

    @field_validator("openai_api_key")
    @classmethod
    def check_openai_key_prefix(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v


class StorageSettings(BaseSettings):
    """Where the conversation is saved between sessions."""

    model_config = _section("STORAGE_")

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="'memory' keeps nothing after the process exits",
    )
    directory: Path = Field(default=DEFAULT_STORAGE_DIR, description="Folder for saved files")
    conversation_key: str = Field(
        default="last_conversation",
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Name of the saved conversation",
    )


class LoggingSettings(BaseSettings):
    """Log level, format and optional log file."""

    model_config = _section("LOG_")

    level: LogLevel = Field(default="INFO")
    format: str = Field(default="%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    date_format: str = Field(default="%H:%M:%S")
    file: Path | None = Field(default=None, description="Also write logs here when set")

    def configure(self) -> None:
        """Install root handlers, replacing whatever was configured before."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if self.file is not None:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file, encoding="utf-8"))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Top-level settings object.

    Example:
        >>> get_settings().storage.conversation_key
        'last_conversation'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="PageCraft")
    debug: bool = Field(default=False, description="Show application logs, like --verbose")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def model_post_init(self, __context) -> None:
        logging.getLogger(__name__).debug(
            f"{self.app_name} settings: provider={self.llm.default_provider}, "
            f"storage={self.storage.backend}",
            extra={
                "llm_provider": self.llm.default_provider,
                "storage_backend": self.storage.backend,
            },
        )


def _apply_dotenv_precedence() -> None:
    """Let ./.env override the process environment unless told otherwise.

    ``PAGECRAFT_ENV_SOURCE=environment`` keeps exported variables authoritative.
    """
    source = os.getenv("PAGECRAFT_ENV_SOURCE", "dotenv").lower()
    if source in {"dotenv", "envfile", "file"} and _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
