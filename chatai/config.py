"""
Application Configuration

Pydantic-based settings management using environment variables.
Settings are grouped by concern (gemini, storage, session, logging).

Usage:
    from chatai.config import get_settings

    settings = get_settings()
    print(settings.gemini.model)
    print(settings.storage.data_dir)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def generate_content_url(base_url: str, api_version: str, model: str) -> str:
    """generateContent URL without the credential query."""
    return f"{base_url.rstrip('/')}/{api_version}/models/{model}:generateContent"


class GeminiSettings(BaseSettings):
    """Generative-language endpoint configuration."""

    base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Scheme and host of the generative-language API",
    )
    api_version: str = Field(default="v1beta", description="API version path segment")
    model: str = Field(default="gemini-2.0-flash-exp", description="Model identifier")
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Transport timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("GEMINI_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def endpoint(self) -> str:
        """generateContent URL without the credential query."""
        return generate_content_url(self.base_url, self.api_version, self.model)


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Key-value backend (memory keeps nothing between runs)",
    )
    data_dir: Path = Field(
        default=Path.home() / ".chatai",
        description="Directory holding one JSON file per persisted key",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        return v.expanduser()


class SessionSettings(BaseSettings):
    """Session store behavior."""

    single_flight: bool = Field(
        default=False,
        description="Reject send_message while another request is in flight",
    )

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stderr only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        GEMINI_*: Endpoint configuration (see GeminiSettings)
        STORAGE_*: Persistence configuration (see StorageSettings)
        SESSION_*: Session store behavior (see SessionSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.gemini.model
        'gemini-2.0-flash-exp'
    """

    environment: Literal["development", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(default="Chat AI", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "model": self.gemini.model,
                "storage_backend": self.storage.backend,
            },
        )


_DOTENV_PATH = Path.cwd() / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("CHATAI_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; call clear_settings_cache()
    after changing the environment.
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Example:
        >>> os.environ["GEMINI_MODEL"] = "gemini-1.5-flash"
        >>> clear_settings_cache()
        >>> get_settings().gemini.model
        'gemini-1.5-flash'
    """
    get_settings.cache_clear()
