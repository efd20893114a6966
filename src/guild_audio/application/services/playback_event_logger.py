"""Event bus subscriber that writes a log line for every playback and session event."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.shared.events import QueueExhausted, SessionDestroyed, TrackFailed, TrackStarted
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus

logger = logging.getLogger(__name__)


class PlaybackEventLogger:
    """Subscribes to the playback and session events and logs each one.

    Other subscribers (for example, a cog announcing tracks in a text
    channel) attach to the same bus independently.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self._bus.subscribe(TrackStarted, self._on_track_started)
        self._bus.subscribe(TrackFailed, self._on_track_failed)
        self._bus.subscribe(QueueExhausted, self._on_queue_exhausted)
        self._bus.subscribe(SessionDestroyed, self._on_session_destroyed)
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._bus.unsubscribe(TrackStarted, self._on_track_started)
        self._bus.unsubscribe(TrackFailed, self._on_track_failed)
        self._bus.unsubscribe(QueueExhausted, self._on_queue_exhausted)
        self._bus.unsubscribe(SessionDestroyed, self._on_session_destroyed)
        self._started = False

    async def _on_track_started(self, event: TrackStarted) -> None:
        logger.info(
            LogTemplates.EVENT_TRACK_STARTED,
            event.guild_id,
            event.song_title,
            event.platform,
            event.requester_id,
        )

    async def _on_track_failed(self, event: TrackFailed) -> None:
        logger.warning(
            LogTemplates.EVENT_TRACK_FAILED,
            event.guild_id,
            event.song_title,
            event.attempts,
            event.reason,
        )

    async def _on_queue_exhausted(self, event: QueueExhausted) -> None:
        logger.info(LogTemplates.EVENT_QUEUE_EXHAUSTED, event.guild_id, event.last_song_title)

    async def _on_session_destroyed(self, event: SessionDestroyed) -> None:
        logger.info(LogTemplates.EVENT_SESSION_DESTROYED, event.guild_id, event.reason)
