"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite and in-memory cache stores)
- Discord (bot, voice gateway/transport/device adapters)
- Audio (yt-dlp resolvers, FFmpeg sources)
"""

from guild_audio.infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway
from guild_audio.infrastructure.discord.bot import create_bot
from guild_audio.infrastructure.persistence.database import Database

__all__ = [
    "create_bot",
    "DiscordVoiceGateway",
    "Database",
]
