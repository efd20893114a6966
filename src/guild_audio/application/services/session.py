"""Per-guild session facade over the connection, the playback engine and the router."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import EnqueueSummary, Playlist, QueueItem
from ...domain.music.value_objects import SessionEndReason
from ...domain.shared.exceptions import ConnectionLostError, ResolutionNotFoundError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.value_objects import ConnectionState, Platform
    from .connection_manager import ConnectionManager
    from .platform_router import PlatformRouter
    from .playback_engine import PlaybackEngine

logger = logging.getLogger(__name__)


class Session:
    """Everything the command layer can do for one guild."""

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        channel_id: DiscordSnowflake,
        connection: ConnectionManager,
        engine: PlaybackEngine,
        router: PlatformRouter,
    ) -> None:
        self._guild_id = guild_id
        self._channel_id = channel_id
        self._connection = connection
        self._engine = engine
        self._router = router

    def __repr__(self) -> str:
        return f"Session(guild_id={self._guild_id}, channel_id={self._channel_id})"

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def channel_id(self) -> DiscordSnowflake:
        return self._channel_id

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection.state

    @property
    def is_closed(self) -> bool:
        return self._connection.has_left

    @property
    def playing(self) -> QueueItem | None:
        return self._engine.playing

    @property
    def queue(self) -> tuple[QueueItem, ...]:
        return self._engine.queue

    @property
    def is_playing(self) -> bool:
        return self._engine.is_playing

    async def ensure_ready(self, timeout: float | None = None) -> None:
        await self._connection.ensure_ready(timeout)

    async def resolve_and_enqueue(
        self,
        query: str,
        platform_hint: Platform | None = None,
        *,
        requester_id: DiscordSnowflake,
        requester_name: str,
    ) -> EnqueueSummary:
        """Resolve a query and append the result to the queue.

        Resolution errors propagate; the session stays usable.
        """
        media = await self._router.resolve(query, platform_hint)

        if isinstance(media, Playlist):
            if not media.songs:
                raise ResolutionNotFoundError(query, entity="playlist")
            songs = media.songs
            summary = EnqueueSummary.for_playlist(media, requester_name)
        else:
            songs = [media]
            summary = EnqueueSummary.for_song(media, requester_name)

        # The session may have been torn down while the resolver was busy.
        if self.is_closed:
            raise ConnectionLostError(self._guild_id)

        await self._engine.add_songs(QueueItem.for_songs(songs, requester_id, requester_name))
        logger.info(
            LogTemplates.RESOLVER_RESOLVED, summary.kind.value, summary.title, summary.platform.value
        )
        return summary

    async def pause(self) -> bool:
        return await self._engine.pause()

    async def resume(self) -> bool:
        return await self._engine.resume()

    async def stop(self) -> None:
        await self._engine.stop()

    async def jump(self, position: int) -> QueueItem:
        return await self._engine.jump(position)

    def remove(self, position: int) -> QueueItem:
        return self._engine.remove(position)

    def shuffle(self) -> None:
        self._engine.shuffle()

    async def leave(self, reason: SessionEndReason = SessionEndReason.USER_REQUEST) -> bool:
        return await self._connection.leave(reason)
