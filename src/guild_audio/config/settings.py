"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.music.value_objects import Platform
from ..domain.shared.constants import (
    AudioConstants,
    CacheURLSchemes,
    LimitConstants,
    TimeConstants,
    VoiceConstants,
)
from ..domain.shared.messages import ErrorMessages


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    self_deafen: bool = True


class ConnectionSettings(BaseModel):
    """Voice connection lifecycle timings."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ready_timeout_seconds: float = Field(
        default=VoiceConstants.READY_TIMEOUT_SECONDS,
        gt=0.0,
        le=300.0,
        validation_alias=AliasChoices("ready_timeout_seconds", "ready_timeout"),
    )
    recovery_window_seconds: float = Field(
        default=VoiceConstants.RECOVERY_WINDOW_SECONDS,
        gt=0.0,
        le=60.0,
        validation_alias=AliasChoices("recovery_window_seconds", "recovery_window"),
    )
    max_rejoin_attempts: int = Field(default=VoiceConstants.MAX_REJOIN_ATTEMPTS, ge=0, le=50)
    connect_timeout_seconds: float = Field(
        default=VoiceConstants.CONNECT_TIMEOUT_SECONDS, gt=0.0, le=120.0
    )


class PlaybackSettings(BaseModel):
    """Audio playback configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: float = Field(
        default=LimitConstants.DEFAULT_VOLUME,
        ge=LimitConstants.MIN_VOLUME,
        le=LimitConstants.MAX_VOLUME,
    )
    resource_attempts: int = Field(
        default=LimitConstants.DEFAULT_RESOURCE_ATTEMPTS,
        ge=1,
        le=LimitConstants.MAX_RESOURCE_ATTEMPTS,
        validation_alias=AliasChoices("resource_attempts", "max_resource_attempts"),
    )
    fade_in_seconds: float = Field(default=AudioConstants.FADE_IN_SECONDS, ge=0.0, le=10.0)
    ffmpeg_before_options: str = AudioConstants.FFMPEG_BEFORE_OPTIONS_DEFAULT
    ffmpeg_options: str = AudioConstants.FFMPEG_OPTIONS_DEFAULT


class ResolverSettings(BaseModel):
    """Media resolver configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_platform: Platform = Platform.YOUTUBE
    ytdlp_format: str = AudioConstants.YTDLP_FORMAT_DEFAULT
    cache_ttl_seconds: int = Field(
        default=TimeConstants.LONG_CACHE_TTL,
        ge=1,
        validation_alias=AliasChoices("cache_ttl_seconds", "cache_ttl"),
    )
    socket_timeout: int = Field(default=AudioConstants.YTDLP_SOCKET_TIMEOUT, ge=1, le=120)


class CacheSettings(BaseModel):
    """Resolver cache configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    backend: Literal["memory", "sqlite"] = "memory"
    url: str = Field(
        default="sqlite:///data/cache.db",
        validation_alias=AliasChoices("url", "cache_url"),
    )
    max_entries: int = Field(default=LimitConstants.DEFAULT_CACHE_MAX_ENTRIES, ge=1)
    busy_timeout_ms: int = Field(
        default=TimeConstants.DEFAULT_BUSY_TIMEOUT_MS,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=int(TimeConstants.DATABASE_CONNECTION_TIMEOUT),
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate cache URL format."""
        if not v.startswith(CacheURLSchemes.SQLITE):
            raise ValueError(ErrorMessages.INVALID_CACHE_URL)
        return v


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, CONNECTION__READY_TIMEOUT_SECONDS, etc. (nested with ``__``)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
