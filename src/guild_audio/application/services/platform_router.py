"""Platform router - classifies queries and dispatches them to the right resolver."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ...domain.music.entities import Playlist, Song
from ...domain.music.services import MediaClassifier
from ...domain.music.value_objects import MediaKind, MediaType, Platform
from ...domain.shared.exceptions import DomainError, ResolverUnavailableError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..interfaces.media_resolver import AudioResource, MediaResolver

logger = logging.getLogger(__name__)


class PlatformRouter:
    """Registry of resolvers keyed by platform, plus the resolution policy.

    Resolution order for a query:

    1. A playlist-shaped query is looked up as a playlist. If that fails and
       the query is also item-shaped, it is looked up as a single song.
    2. An item-shaped query is looked up as a single song.
    3. Anything else is a text search, which always yields one song.
    """

    def __init__(
        self,
        resolvers: Iterable[MediaResolver] = (),
        *,
        default_platform: Platform = Platform.YOUTUBE,
    ) -> None:
        self._resolvers: dict[Platform, MediaResolver] = {}
        self._default_platform = default_platform
        for resolver in resolvers:
            self.register(resolver)

    def register(self, resolver: MediaResolver) -> None:
        self._resolvers[resolver.platform] = resolver
        logger.debug(LogTemplates.RESOLVER_REGISTERED, resolver.platform.value)

    @property
    def platforms(self) -> frozenset[Platform]:
        return frozenset(self._resolvers)

    def resolver_for(self, platform: Platform) -> MediaResolver:
        resolver = self._resolvers.get(platform)
        if resolver is None:
            raise ResolverUnavailableError(platform.value)
        return resolver

    @staticmethod
    def classify(query: str) -> frozenset[MediaType]:
        return MediaClassifier.classify(query)

    def select_platform(
        self, tags: frozenset[MediaType], platform_hint: Platform | None = None
    ) -> Platform:
        """Pick the platform a query belongs to.

        The tags decide when they all point at one platform. Otherwise the
        hint wins, then the configured default.
        """
        implied = MediaClassifier.platforms(tags)
        if len(implied) == 1:
            return next(iter(implied))
        if platform_hint is not None:
            return platform_hint
        return self._default_platform

    async def resolve(self, query: str, platform_hint: Platform | None = None) -> Song | Playlist:
        query = query.strip()
        tags = self.classify(query)
        logger.debug(LogTemplates.ROUTER_CLASSIFIED, query, sorted(t.value for t in tags))

        resolver = self.resolver_for(self.select_platform(tags, platform_hint))
        kinds = {tag.kind for tag in tags}

        if MediaKind.PLAYLIST in kinds:
            try:
                return await resolver.get_playlist(query)
            except DomainError as e:
                if MediaKind.ITEM not in kinds:
                    raise
                logger.info(LogTemplates.ROUTER_PLAYLIST_FALLBACK, query, e.message)
                return await resolver.get_song(query)

        if MediaKind.ITEM in kinds:
            return await resolver.get_song(query)

        return await resolver.search(query)

    async def create_audio_resource(self, song: Song) -> AudioResource:
        return await self.resolver_for(song.platform).create_audio_resource(song)
