"""
FFmpeg Audio Sources

Builds discord.py PCM sources for stream URLs.
"""

from __future__ import annotations

from dataclasses import dataclass

import discord

from guild_audio.config.settings import PlaybackSettings
from guild_audio.domain.shared.constants import AudioConstants
from guild_audio.domain.shared.messages import ErrorMessages


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio processing."""

    before_options: str = AudioConstants.FFMPEG_BEFORE_OPTIONS_DEFAULT
    options: str = AudioConstants.FFMPEG_OPTIONS_DEFAULT

    # Audio processing
    fade_in_seconds: float = AudioConstants.FADE_IN_SECONDS

    # Volume (handled by PCMVolumeTransformer)
    default_volume: float = AudioConstants.DEFAULT_VOLUME

    @classmethod
    def from_settings(cls, settings: PlaybackSettings) -> FFmpegConfig:
        return cls(
            before_options=settings.ffmpeg_before_options,
            options=settings.ffmpeg_options,
            fade_in_seconds=settings.fade_in_seconds,
            default_volume=settings.default_volume,
        )

    def get_before_options(self) -> str:
        """Get FFmpeg before_options string."""
        return self.before_options.strip()

    def get_options(self) -> str:
        """Get FFmpeg options string."""
        opts = [self.options.strip()] if self.options.strip() else []
        if self.fade_in_seconds > 0:
            opts.append(AudioConstants.FFMPEG_FADE_IN_FILTER.format(duration=self.fade_in_seconds))
        return " ".join(opts)


class FFmpegSourceFactory:
    """Creates volume-controlled FFmpeg PCM sources.

    The returned source is the audio resource handed to the voice device.
    """

    def __init__(self, config: FFmpegConfig | None = None) -> None:
        self._config = config or FFmpegConfig()

    @property
    def config(self) -> FFmpegConfig:
        return self._config

    def create(
        self, stream_url: str, *, volume: float | None = None
    ) -> discord.PCMVolumeTransformer[discord.FFmpegPCMAudio]:
        """Create an audio source for a stream URL.

        Args:
            stream_url: Direct media URL.
            volume: Optional volume level (0.0-2.0).

        Returns:
            A PCMVolumeTransformer wrapping an FFmpegPCMAudio source.

        Raises:
            ValueError: If the stream URL is empty.
        """
        if not stream_url:
            raise ValueError(ErrorMessages.NO_URL_IN_INFO_DICT)

        source = discord.FFmpegPCMAudio(
            stream_url,
            before_options=self._config.get_before_options(),
            options=self._config.get_options(),
        )

        vol = volume if volume is not None else self._config.default_volume
        return discord.PCMVolumeTransformer(source, volume=vol)
