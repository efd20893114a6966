"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from guild_audio.domain.shared.constants import VoiceConstants
from guild_audio.domain.shared.messages import ErrorMessages


class Platform(Enum):
    """Supported source platforms, used as the resolver registry key."""

    YOUTUBE = "youtube"
    SOUNDCLOUD = "soundcloud"


class MediaKind(Enum):
    """Shape of a reference: a collection of songs or a single one."""

    PLAYLIST = "playlist"
    ITEM = "item"


class MediaType(Enum):
    """Classification label from matching a query against a platform's URL shape."""

    YOUTUBE_PLAYLIST = "youtube_playlist"
    YOUTUBE_VIDEO = "youtube_video"
    SOUNDCLOUD_PLAYLIST = "soundcloud_playlist"
    SOUNDCLOUD_TRACK = "soundcloud_track"

    @property
    def platform(self) -> Platform:
        return _MEDIA_TYPE_SHAPES[self][0]

    @property
    def kind(self) -> MediaKind:
        return _MEDIA_TYPE_SHAPES[self][1]

    @property
    def is_playlist(self) -> bool:
        return self.kind == MediaKind.PLAYLIST


_MEDIA_TYPE_SHAPES: dict[MediaType, tuple[Platform, MediaKind]] = {
    MediaType.YOUTUBE_PLAYLIST: (Platform.YOUTUBE, MediaKind.PLAYLIST),
    MediaType.YOUTUBE_VIDEO: (Platform.YOUTUBE, MediaKind.ITEM),
    MediaType.SOUNDCLOUD_PLAYLIST: (Platform.SOUNDCLOUD, MediaKind.PLAYLIST),
    MediaType.SOUNDCLOUD_TRACK: (Platform.SOUNDCLOUD, MediaKind.ITEM),
}


class EnqueueKind(Enum):
    """What a play request put on the queue."""

    PLAYLIST = "playlist"
    VIDEO = "video"
    TRACK = "track"

    @classmethod
    def for_song(cls, platform: Platform) -> EnqueueKind:
        """YouTube singles are videos; everything else is a track."""
        return cls.VIDEO if platform == Platform.YOUTUBE else cls.TRACK


class ConnectionStatus(Enum):
    """Voice transport connection states.

    State transitions:
    - SIGNALLING -> CONNECTING -> READY (join)
    - READY -> DISCONNECTED (network failure, kick, move)
    - DISCONNECTED -> SIGNALLING (rejoin)
    - Any -> DESTROYED (terminal)
    """

    SIGNALLING = "signalling"
    CONNECTING = "connecting"
    READY = "ready"
    DISCONNECTED = "disconnected"
    DESTROYED = "destroyed"

    @property
    def is_pending(self) -> bool:
        """Whether the transport is on its way to READY."""
        return self in {ConnectionStatus.SIGNALLING, ConnectionStatus.CONNECTING}


class DisconnectReason(Enum):
    """Why the transport entered DISCONNECTED."""

    WEBSOCKET_CLOSE = "websocket_close"
    ADAPTER_UNAVAILABLE = "adapter_unavailable"
    ENDPOINT_REMOVED = "endpoint_removed"
    MANUAL = "manual"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of a transport's state as reported to listeners."""

    status: ConnectionStatus
    reason: DisconnectReason | None = None
    close_code: int | None = None

    @property
    def is_recoverable_close(self) -> bool:
        """A 4014 close means a move or kick; the gateway may reconnect on its own."""
        return (
            self.status == ConnectionStatus.DISCONNECTED
            and self.reason == DisconnectReason.WEBSOCKET_CLOSE
            and self.close_code == VoiceConstants.RECOVERABLE_CLOSE_CODE
        )

    def __str__(self) -> str:
        if self.close_code is not None:
            return f"{self.status.value}({self.close_code})"
        return self.status.value


class DeviceState(Enum):
    """Audio device (player) states."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def is_active(self) -> bool:
        return self in {DeviceState.PLAYING, DeviceState.PAUSED}


class SessionEndReason(Enum):
    """Reasons a session can be torn down."""

    USER_REQUEST = "user_request"
    CONNECTION_TIMEOUT = "connection_timeout"
    CONNECTION_LOST = "connection_lost"
    RECOVERY_TIMEOUT = "recovery_timeout"
    TRANSPORT_DESTROYED = "transport_destroyed"
    SHUTDOWN = "shutdown"
    GUILD_REMOVED = "guild_removed"


@dataclass(frozen=True)
class JoinParams:
    """Where a session's transport should connect."""

    guild_id: int
    channel_id: int

    def __post_init__(self) -> None:
        if self.guild_id <= 0:
            raise ValueError(ErrorMessages.INVALID_GUILD_ID)
        if self.channel_id <= 0:
            raise ValueError(ErrorMessages.INVALID_CHANNEL_ID)
