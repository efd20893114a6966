"""Playback engine - turns a session's queue into a sequential stream of audio resources."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ...domain.music.entities import PlaybackQueue, QueueItem
from ...domain.music.value_objects import DeviceState
from ...domain.shared.constants import LimitConstants
from ...domain.shared.events import DomainEvent, QueueExhausted, TrackFailed, TrackStarted
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.voice_transport import AudioDevice
    from .platform_router import PlatformRouter

logger = logging.getLogger(__name__)


class PlaybackEngine:
    """Owns the queue and the audio device for one guild.

    ``advance()`` is serialized by a lock. A device idle notification that
    arrives while an advance is in flight is dropped, since the running
    advance already decides what plays next.

    ``stop()`` does not wait for that lock. It bumps a generation counter
    instead, and an in-flight advance that sees a newer generation after any
    await gives up without playing.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        device: AudioDevice,
        router: PlatformRouter,
        event_bus: EventBus,
        resource_attempts: int = LimitConstants.DEFAULT_RESOURCE_ATTEMPTS,
        rng: random.Random | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._device = device
        self._router = router
        self._event_bus = event_bus
        self._resource_attempts = max(1, resource_attempts)
        self._rng = rng

        self._queue = PlaybackQueue()
        self._lock = asyncio.Lock()
        self._pending_events: list[DomainEvent] = []
        self._generation = 0

        self._device.set_state_listener(self._on_device_state_change)

    # === Views ===

    @property
    def guild_id(self) -> DiscordSnowflake:
        return self._guild_id

    @property
    def playing(self) -> QueueItem | None:
        return self._queue.playing

    @property
    def queue(self) -> tuple[QueueItem, ...]:
        return self._queue.snapshot()

    @property
    def is_playing(self) -> bool:
        return self._queue.playing is not None

    @property
    def device_state(self) -> DeviceState:
        return self._device.state

    # === Queue operations ===

    async def add_songs(self, items: Sequence[QueueItem]) -> int:
        """Append items in order, starting playback if nothing is playing.

        Returns:
            The queue length right after appending.
        """
        length = self._queue.extend(items)
        logger.info(LogTemplates.PLAYBACK_SONGS_ADDED, len(items), self._guild_id, length)
        if self._queue.playing is None:
            await self.advance()
        return length

    async def jump(self, position: int) -> QueueItem:
        """Play the item at a 1-indexed position next, replacing the current song."""
        item = self._queue.move_to_front(position)
        logger.info(LogTemplates.PLAYBACK_JUMPED, item.song.title, self._guild_id)
        await self.advance()
        return item

    def remove(self, position: int) -> QueueItem:
        item = self._queue.remove_at(position)
        logger.info(LogTemplates.PLAYBACK_REMOVED, item.song.title, self._guild_id)
        return item

    def shuffle(self) -> None:
        self._queue.shuffle(self._rng)
        logger.info(LogTemplates.PLAYBACK_SHUFFLED, len(self._queue), self._guild_id)

    async def stop(self) -> None:
        """Empty the queue and stop the device, abandoning any in-flight advance."""
        self._generation += 1
        self._queue.clear()
        await self._device.stop()
        logger.info(LogTemplates.PLAYBACK_STOPPED, self._guild_id)

    async def pause(self) -> bool:
        paused = await self._device.pause()
        if paused:
            logger.info(LogTemplates.PLAYBACK_PAUSED, self._guild_id)
        return paused

    async def resume(self) -> bool:
        resumed = await self._device.unpause()
        if resumed:
            logger.info(LogTemplates.PLAYBACK_RESUMED, self._guild_id)
        return resumed

    # === Advancing ===

    async def advance(self) -> QueueItem | None:
        """Play the next playable item in the queue, or go idle if there is none.

        Returns:
            The item now playing, or None if the queue ran out.
        """
        async with self._lock:
            item = await self._advance_locked()
        await self._flush_events()
        return item

    async def _advance_locked(self) -> QueueItem | None:
        generation = self._generation
        previous = self._queue.playing
        # Every pass consumes one queue item, so the loop ends with the queue.
        while self._generation == generation:
            item = self._queue.pop_next()
            if item is None:
                await self._device.stop()
                if previous is not None:
                    logger.info(LogTemplates.PLAYBACK_QUEUE_EXHAUSTED, self._guild_id)
                    self._pending_events.append(
                        QueueExhausted(
                            guild_id=self._guild_id,
                            last_song_id=previous.song.id,
                            last_song_title=previous.song.title,
                        )
                    )
                return None

            if await self._start(item, generation):
                return item
        logger.debug(LogTemplates.PLAYBACK_ADVANCE_ABANDONED, self._guild_id)
        return None

    def _stale(self, generation: int) -> bool:
        return self._generation != generation

    async def _start(self, item: QueueItem, generation: int) -> bool:
        song = item.song
        last_error: Exception | None = None
        for attempt in range(1, self._resource_attempts + 1):
            try:
                resource = await self._router.create_audio_resource(song)
                if self._stale(generation):
                    return False
                await self._device.play(resource)
            except Exception as e:
                if self._stale(generation):
                    return False
                last_error = e
                logger.warning(
                    LogTemplates.PLAYBACK_RESOURCE_FAILED,
                    song.title,
                    attempt,
                    self._resource_attempts,
                    e,
                )
                continue

            if self._stale(generation):
                # Stopped while play() was pending.
                await self._device.stop()
                return False

            logger.info(LogTemplates.PLAYBACK_STARTED, song.title, self._guild_id)
            self._pending_events.append(
                TrackStarted(
                    guild_id=self._guild_id,
                    song_id=song.id,
                    song_title=song.title,
                    song_url=song.url,
                    platform=song.platform.value,
                    duration_seconds=song.duration_seconds,
                    requester_id=item.requester_id,
                )
            )
            return True

        logger.error(
            LogTemplates.PLAYBACK_SKIPPING_SONG, song.title, self._guild_id, self._resource_attempts
        )
        self._pending_events.append(
            TrackFailed(
                guild_id=self._guild_id,
                song_id=song.id,
                song_title=song.title,
                attempts=self._resource_attempts,
                reason=str(last_error) if last_error else "",
            )
        )
        return False

    async def _flush_events(self) -> None:
        events, self._pending_events = self._pending_events, []
        for event in events:
            await self._event_bus.publish(event)

    async def _on_device_state_change(self, old: DeviceState, new: DeviceState) -> None:
        if new != DeviceState.IDLE or not old.is_active:
            return
        if self._lock.locked():
            logger.debug(LogTemplates.PLAYBACK_IDLE_IGNORED, self._guild_id)
            return
        await self.advance()
