"""Centralized constants for configuration keys, database schema, and other shared values.

This module provides reusable constants that reduce magic strings and improve maintainability.
"""

from __future__ import annotations


class ConfigKeys:
    """Configuration and environment variable key names."""

    LOG_CONFIG_PATH = "LOG_CONFIG_PATH"
    NO_COLOR = "NO_COLOR"


class DatabaseTables:
    """Database table names."""

    MEDIA_CACHE = "media_cache"


class DatabaseColumns:
    """Database column names."""

    CACHE_KEY = "cache_key"
    VALUE = "value"
    EXPIRES_AT = "expires_at"


class SQLPragmas:
    """SQLite PRAGMA statements applied to each connection."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class CacheKeys:
    """Cache key namespaces, one per resolver and entity kind."""

    YOUTUBE_SONG = "yt:song:{id}"
    YOUTUBE_PLAYLIST = "yt:playlist:{id}"
    SOUNDCLOUD_SONG = "sc:song:{id}"
    SOUNDCLOUD_PLAYLIST = "sc:playlist:{id}"


class AudioConstants:
    """Audio and FFmpeg configuration constants."""

    # FFmpeg Options
    FFMPEG_BEFORE_OPTIONS_DEFAULT = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    FFMPEG_OPTIONS_DEFAULT = "-vn"  # No video
    FFMPEG_FADE_IN_FILTER = '-af "afade=t=in:ss=0:d={duration}"'

    # yt-dlp Options
    YTDLP_FORMAT_DEFAULT = "bestaudio/best"
    YTDLP_SOCKET_TIMEOUT = 15

    # Audio Settings
    DEFAULT_VOLUME = 0.5
    FADE_IN_SECONDS = 0.5


class VoiceConstants:
    """Voice gateway constants."""

    # Close code sent when the bot is moved to another channel or kicked.
    RECOVERABLE_CLOSE_CODE = 4014

    READY_TIMEOUT_SECONDS = 20.0
    RECOVERY_WINDOW_SECONDS = 5.0
    MAX_REJOIN_ATTEMPTS = 5
    CONNECT_TIMEOUT_SECONDS = 15.0


class CacheURLSchemes:
    """Valid cache URL schemes for validation."""

    SQLITE = "sqlite://"
    MEMORY = ":memory:"


class TimeConstants:
    """Time-related constants in seconds."""

    DATABASE_CONNECTION_TIMEOUT = 10.0
    LONG_CACHE_TTL = 86400  # 24 hours
    DEFAULT_BUSY_TIMEOUT_MS = 5000


class LimitConstants:
    """Numeric limits and constraints."""

    MIN_VOLUME = 0.0
    MAX_VOLUME = 2.0
    DEFAULT_VOLUME = 0.5

    DEFAULT_RESOURCE_ATTEMPTS = 2
    MAX_RESOURCE_ATTEMPTS = 10

    DEFAULT_CACHE_MAX_ENTRIES = 5000
