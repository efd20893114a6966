"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the event bus, cache, resolvers, voice gateway,
session registry and command handlers. Components are created on-demand and
cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.play_query import PlayQueryHandler
    from ..application.interfaces.cache_store import CacheStore
    from ..application.services.playback_event_logger import PlaybackEventLogger
    from ..application.services.platform_router import PlatformRouter
    from ..application.services.session_registry import SessionRegistry
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.ffmpeg_source import FFmpegSourceFactory
    from ..infrastructure.audio.ytdlp_resolver import SoundCloudResolver, YouTubeResolver
    from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Cross-cutting
    _event_bus: EventBus | None = None
    _cache_store: CacheStore | None = None
    _playback_event_logger: PlaybackEventLogger | None = None

    # Media resolution
    _source_factory: FFmpegSourceFactory | None = None
    _youtube_resolver: YouTubeResolver | None = None
    _soundcloud_resolver: SoundCloudResolver | None = None
    _platform_router: PlatformRouter | None = None

    # Voice sessions
    _voice_gateway: DiscordVoiceGateway | None = None
    _session_registry: SessionRegistry | None = None

    # Command handlers
    _play_query_handler: PlayQueryHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot
        if self._voice_gateway is not None:
            self._voice_gateway.set_bot(bot)

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError("Bot not initialized. Call set_bot() first.")
        return self._bot

    # === Cross-cutting ===

    @property
    def event_bus(self) -> EventBus:
        """Get the event bus shared by all sessions."""
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def playback_event_logger(self) -> PlaybackEventLogger:
        """Get the subscriber that logs playback and session events."""
        if self._playback_event_logger is None:
            from ..application.services.playback_event_logger import PlaybackEventLogger

            self._playback_event_logger = PlaybackEventLogger(self.event_bus)
        return self._playback_event_logger

    @property
    def cache_store(self) -> CacheStore:
        """Get the resolver cache store for the configured backend."""
        if self._cache_store is None:
            cache_settings = self.settings.cache
            if cache_settings.backend == "sqlite":
                from ..infrastructure.persistence.database import Database
                from ..infrastructure.persistence.repositories.cache_repository import (
                    SQLiteCacheStore,
                )

                self._cache_store = SQLiteCacheStore(
                    Database(cache_settings.url, settings=cache_settings),
                    max_entries=cache_settings.max_entries,
                )
            else:
                from ..infrastructure.persistence.memory_cache import InMemoryCacheStore

                self._cache_store = InMemoryCacheStore(max_entries=cache_settings.max_entries)
        return self._cache_store

    # === Media Resolution ===

    @property
    def source_factory(self) -> FFmpegSourceFactory:
        """Get the FFmpeg audio source factory."""
        if self._source_factory is None:
            from ..infrastructure.audio.ffmpeg_source import FFmpegConfig, FFmpegSourceFactory

            self._source_factory = FFmpegSourceFactory(
                FFmpegConfig.from_settings(self.settings.playback)
            )
        return self._source_factory

    @property
    def youtube_resolver(self) -> YouTubeResolver:
        """Get the YouTube resolver."""
        if self._youtube_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YouTubeResolver

            self._youtube_resolver = YouTubeResolver(
                cache=self.cache_store,
                source_factory=self.source_factory,
                settings=self.settings.resolver,
            )
        return self._youtube_resolver

    @property
    def soundcloud_resolver(self) -> SoundCloudResolver:
        """Get the SoundCloud resolver."""
        if self._soundcloud_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import SoundCloudResolver

            self._soundcloud_resolver = SoundCloudResolver(
                cache=self.cache_store,
                source_factory=self.source_factory,
                settings=self.settings.resolver,
            )
        return self._soundcloud_resolver

    @property
    def platform_router(self) -> PlatformRouter:
        """Get the platform router with every resolver registered."""
        if self._platform_router is None:
            from ..application.services.platform_router import PlatformRouter

            self._platform_router = PlatformRouter(
                (self.youtube_resolver, self.soundcloud_resolver),
                default_platform=self.settings.resolver.default_platform,
            )
        return self._platform_router

    # === Voice Sessions ===

    @property
    def voice_gateway(self) -> DiscordVoiceGateway:
        """Get the Discord voice gateway."""
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(
                self._bot,
                discord_settings=self.settings.discord,
                connection_settings=self.settings.connection,
            )
        return self._voice_gateway

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the per-guild session registry."""
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            connection = self.settings.connection
            self._session_registry = SessionRegistry(
                gateway=self.voice_gateway,
                router=self.platform_router,
                event_bus=self.event_bus,
                ready_timeout=connection.ready_timeout_seconds,
                recovery_window=connection.recovery_window_seconds,
                max_rejoin_attempts=connection.max_rejoin_attempts,
                resource_attempts=self.settings.playback.resource_attempts,
            )
        return self._session_registry

    # === Command Handlers ===

    @property
    def play_query_handler(self) -> PlayQueryHandler:
        """Get the play query command handler."""
        if self._play_query_handler is None:
            from ..application.commands.play_query import PlayQueryHandler

            self._play_query_handler = PlayQueryHandler(registry=self.session_registry)
        return self._play_query_handler

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.cache_store.initialize()
        self.playback_event_logger.start()
        logger.info(LogTemplates.CONTAINER_INITIALIZED)

    async def shutdown(self) -> None:
        """Leave every session, then release the cache."""
        if self._session_registry is not None:
            await self._session_registry.shutdown()

        if self._cache_store is not None:
            await self._cache_store.close()

        if self._playback_event_logger is not None:
            self._playback_event_logger.stop()

        if self._event_bus is not None:
            self._event_bus.clear()

        logger.info(LogTemplates.CONTAINER_SHUTDOWN)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
