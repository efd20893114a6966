"""
Music Bounded Context

Songs, playlists, the playback queue, and the connection/device vocabulary.
"""

from guild_audio.domain.music.entities import (
    EnqueueSummary,
    PlaybackQueue,
    Playlist,
    QueueItem,
    Song,
)
from guild_audio.domain.music.value_objects import (
    ConnectionState,
    ConnectionStatus,
    DeviceState,
    DisconnectReason,
    EnqueueKind,
    JoinParams,
    MediaKind,
    MediaType,
    Platform,
    SessionEndReason,
)

__all__ = [
    # Entities
    "Song",
    "Playlist",
    "QueueItem",
    "PlaybackQueue",
    "EnqueueSummary",
    # Value Objects
    "Platform",
    "MediaKind",
    "MediaType",
    "EnqueueKind",
    "ConnectionStatus",
    "ConnectionState",
    "DisconnectReason",
    "DeviceState",
    "SessionEndReason",
    "JoinParams",
]
