"""Audio infrastructure - yt-dlp resolvers and FFmpeg sources."""

from guild_audio.infrastructure.audio.ffmpeg_source import FFmpegConfig, FFmpegSourceFactory
from guild_audio.infrastructure.audio.models import (
    AudioFormatInfo,
    CachedPlaylist,
    YtDlpOpts,
    YtDlpPlaylistInfo,
    YtDlpTrackInfo,
)
from guild_audio.infrastructure.audio.ytdlp_resolver import (
    SoundCloudResolver,
    YouTubeResolver,
    YtDlpResolver,
)

__all__ = [
    "AudioFormatInfo",
    "CachedPlaylist",
    "FFmpegConfig",
    "FFmpegSourceFactory",
    "SoundCloudResolver",
    "YtDlpOpts",
    "YtDlpPlaylistInfo",
    "YtDlpResolver",
    "YtDlpTrackInfo",
    "YouTubeResolver",
]
