"""
Unit Tests for the Dependency Injection Container

Tests for:
- Lazy construction and caching of components
- Cache backend selection from settings
- Bot propagation to the voice gateway
- initialize() / shutdown() lifecycle, including the event logger subscription
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from guild_audio.config.container import Container, create_container
from guild_audio.config.settings import CacheSettings, ResolverSettings, Settings
from guild_audio.domain.music.value_objects import Platform
from guild_audio.domain.shared.events import (
    QueueExhausted,
    SessionDestroyed,
    TrackFailed,
    TrackStarted,
)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def container(settings):
    return create_container(settings)


class TestContainerBasics:
    """Tests for construction and the bot reference."""

    def test_create_container_factory(self, settings):
        container = create_container(settings)
        assert isinstance(container, Container)
        assert container.settings is settings

    def test_bot_not_set_raises(self, container):
        """Should raise RuntimeError when the bot is accessed before set_bot()."""
        with pytest.raises(RuntimeError, match="Bot not initialized"):
            _ = container.bot

    def test_set_bot_propagates_to_existing_gateway(self, container):
        gateway = container.voice_gateway
        gateway.set_bot = MagicMock()
        bot = MagicMock()

        container.set_bot(bot)

        assert container.bot is bot
        gateway.set_bot.assert_called_once_with(bot)


class TestLazyComponents:
    """Each component is built once and then reused."""

    @pytest.mark.parametrize(
        "name",
        [
            "event_bus",
            "playback_event_logger",
            "cache_store",
            "source_factory",
            "youtube_resolver",
            "soundcloud_resolver",
            "platform_router",
            "voice_gateway",
            "session_registry",
            "play_query_handler",
        ],
    )
    def test_caching(self, container, name):
        assert getattr(container, name) is getattr(container, name)

    def test_router_has_both_platforms(self, container):
        assert container.platform_router.platforms == {Platform.YOUTUBE, Platform.SOUNDCLOUD}

    def test_resolvers_share_cache(self, container):
        assert container.youtube_resolver._cache is container.cache_store
        assert container.soundcloud_resolver._cache is container.cache_store

    def test_default_platform_from_settings(self):
        settings = Settings(
            _env_file=None, resolver=ResolverSettings(default_platform=Platform.SOUNDCLOUD)
        )
        router = create_container(settings).platform_router
        assert router.select_platform(frozenset()) == Platform.SOUNDCLOUD


class TestCacheBackend:
    """Tests for cache backend selection."""

    def test_memory_backend_by_default(self, container):
        from guild_audio.infrastructure.persistence.memory_cache import InMemoryCacheStore

        assert isinstance(container.cache_store, InMemoryCacheStore)

    def test_sqlite_backend(self, tmp_path):
        from guild_audio.infrastructure.persistence.repositories import SQLiteCacheStore

        settings = Settings(
            _env_file=None,
            cache=CacheSettings(backend="sqlite", url=f"sqlite:///{tmp_path / 'cache.db'}"),
        )
        assert isinstance(create_container(settings).cache_store, SQLiteCacheStore)


class TestLifecycle:
    """Tests for initialize() and shutdown()."""

    async def test_initialize_prepares_cache(self, container):
        container._cache_store = MagicMock()
        container._cache_store.initialize = AsyncMock()

        await container.initialize()

        container._cache_store.initialize.assert_awaited_once()

    @pytest.mark.parametrize(
        "event_type", [TrackStarted, TrackFailed, QueueExhausted, SessionDestroyed]
    )
    async def test_initialize_subscribes_event_logger(self, container, event_type):
        container._cache_store = MagicMock()
        container._cache_store.initialize = AsyncMock()

        await container.initialize()

        assert container.playback_event_logger.started
        assert container.event_bus.handler_count(event_type) == 1

    async def test_shutdown_stops_event_logger(self, container):
        container._cache_store = MagicMock()
        container._cache_store.initialize = AsyncMock()
        container._cache_store.close = AsyncMock()
        await container.initialize()

        await container.shutdown()

        assert not container.playback_event_logger.started
        assert container.event_bus.handler_count(TrackStarted) == 0

    async def test_shutdown_leaves_sessions_then_closes_cache(self, container):
        calls = []
        registry = MagicMock()
        registry.shutdown = AsyncMock(side_effect=lambda: calls.append("registry"))
        cache = MagicMock()
        cache.close = AsyncMock(side_effect=lambda: calls.append("cache"))
        container._session_registry = registry
        container._cache_store = cache

        await container.shutdown()

        assert calls == ["registry", "cache"]

    async def test_shutdown_without_components(self, container):
        """Should not build anything just to shut it down."""
        await container.shutdown()

        assert container._session_registry is None
        assert container._cache_store is None
