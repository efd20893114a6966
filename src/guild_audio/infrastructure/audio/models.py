"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data,
caching extraction results, and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from guild_audio.domain.shared.types import (
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    PositiveInt,
)

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 15
DEFAULT_HTTP_CHUNK_SIZE: Final[int] = 1024 * 1024  # 1 MiB
UNKNOWN_TITLE: Final[str] = "Unknown Title"
UNKNOWN_AUTHOR: Final[str] = "Unknown"


def _coerce_non_negative_int(v: Any) -> int | None:
    if v is None:
        return None
    try:
        val = int(v)
    except (TypeError, ValueError):
        return None
    return val if val >= 0 else None


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class AudioFormatInfo(BaseModel):
    """A single audio format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None
    vcodec: NonEmptyStr | None = None
    abr: float | None = None

    @property
    def is_audio(self) -> bool:
        return self.acodec != "none" and self.url is not None


class ThumbnailInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr
    width: NonNegativeInt | None = None


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result for a single video or track.

    Extra fields from yt-dlp are silently ignored, keeping memory usage low.
    Before-validators coerce garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: HttpUrlStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = UNKNOWN_TITLE
    duration: NonNegativeInt | None = None
    thumbnail: HttpUrlStr | None = None
    thumbnails: list[ThumbnailInfo] = Field(default_factory=list)
    artist: NonEmptyStr | None = None
    creator: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None
    channel: NonEmptyStr | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)

    @field_validator(
        "id", "webpage_url", "url", "thumbnail",
        "artist", "creator", "uploader", "channel",
        mode="before",
    )
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only values to None; ids may arrive as ints."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to default when yt-dlp sends empty or non-string title."""
        if not isinstance(v, str) or not v.strip():
            return UNKNOWN_TITLE
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to non-negative int; yt-dlp reports floats for some extractors."""
        return _coerce_non_negative_int(v)

    @field_validator("thumbnails", "formats", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict) and item.get("url")]

    @property
    def author(self) -> str:
        return self.artist or self.uploader or self.channel or self.creator or UNKNOWN_AUTHOR

    @property
    def best_thumbnail(self) -> str | None:
        if self.thumbnail:
            return self.thumbnail
        candidates = [t for t in self.thumbnails if t.url.startswith(("http://", "https://"))]
        if not candidates:
            return None
        return max(candidates, key=lambda t: t.width or 0).url

    @property
    def stream_url(self) -> str | None:
        """The direct media URL chosen by the format selector, else the best audio format."""
        if self.url and self.webpage_url and self.url != self.webpage_url:
            return self.url
        audio_formats = [f for f in self.formats if f.is_audio]
        if not audio_formats:
            return None
        audio_only = [f for f in audio_formats if f.vcodec == "none"] or audio_formats
        return max(audio_only, key=lambda f: f.abr or 0.0).url


class YtDlpPlaylistInfo(BaseModel):
    """Trimmed yt-dlp extraction result for a playlist or set."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr | None = None
    webpage_url: HttpUrlStr | None = None
    title: NonEmptyStr = UNKNOWN_TITLE
    uploader: NonEmptyStr | None = None
    channel: NonEmptyStr | None = None
    thumbnail: HttpUrlStr | None = None
    thumbnails: list[ThumbnailInfo] = Field(default_factory=list)
    entries: list[YtDlpTrackInfo] = Field(default_factory=list)

    @field_validator("id", "webpage_url", "thumbnail", "uploader", "channel", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return UNKNOWN_TITLE
        return v

    @field_validator("thumbnails", mode="before")
    @classmethod
    def _coerce_thumbnails(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict) and item.get("url")]

    @field_validator("entries", mode="before")
    @classmethod
    def _drop_unavailable_entries(cls, v: Any) -> list[Any]:
        """Private or deleted videos come back as None entries."""
        if v is None:
            return []
        return [entry for entry in v if isinstance(entry, dict)]

    @property
    def author(self) -> str:
        return self.uploader or self.channel or UNKNOWN_AUTHOR

    @property
    def best_thumbnail(self) -> str | None:
        if self.thumbnail:
            return self.thumbnail
        candidates = [t for t in self.thumbnails if t.url.startswith(("http://", "https://"))]
        if not candidates:
            return None
        return max(candidates, key=lambda t: t.width or 0).url


class CachedPlaylist(BaseModel):
    """Cached playlist: metadata plus song ids, re-hydrated through the song cache."""

    model_config = ConfigDict(frozen=True)

    id: NonEmptyStr
    title: NonEmptyStr
    author: NonEmptyStr
    thumbnail: HttpUrlStr | None = None
    url: HttpUrlStr | None = None
    song_ids: list[NonEmptyStr] = Field(default_factory=list)


# ── yt-dlp option models ───────────────────────────────────────────────


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    http_chunk_size: PositiveInt = DEFAULT_HTTP_CHUNK_SIZE
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    ignoreerrors: bool = False
