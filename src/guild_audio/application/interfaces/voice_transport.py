"""Port interfaces for the voice transport connection and the audio device."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from guild_audio.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.value_objects import ConnectionState, DeviceState, JoinParams
    from .media_resolver import AudioResource

TransportStateListener = Callable[["ConnectionState", "ConnectionState"], None]
DeviceStateListener = Callable[["DeviceState", "DeviceState"], Awaitable[None]]


class AudioDevice(ABC):
    """Streams one audio resource at a time over a subscribed transport.

    The state listener is awaited inline on every transition, and is not
    called when the state does not change.
    """

    @property
    @abstractmethod
    def state(self) -> "DeviceState":
        ...

    @abstractmethod
    def set_state_listener(self, listener: DeviceStateListener | None) -> None:
        ...

    @abstractmethod
    async def play(self, resource: "AudioResource") -> None:
        """Start playing a resource, replacing anything currently playing."""
        ...

    @abstractmethod
    async def pause(self) -> bool:
        ...

    @abstractmethod
    async def unpause(self) -> bool:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...


class VoiceTransport(ABC):
    """A live voice connection for one guild.

    The state listener is called synchronously from the transport with the
    previous and the new state.
    """

    @property
    @abstractmethod
    def guild_id(self) -> DiscordSnowflake:
        ...

    @property
    @abstractmethod
    def state(self) -> "ConnectionState":
        ...

    @property
    @abstractmethod
    def rejoin_attempts(self) -> int:
        """Rejoins requested since the transport was last READY."""
        ...

    @abstractmethod
    def set_state_listener(self, listener: TransportStateListener | None) -> None:
        ...

    @abstractmethod
    def subscribe(self, device: AudioDevice) -> None:
        """Route the device's output over this transport."""
        ...

    @abstractmethod
    async def rejoin(self) -> bool:
        """Ask the transport to reconnect; returns False if it could not try."""
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the connection down for good. The state becomes DESTROYED."""
        ...


class VoiceGateway(ABC):
    """Factory for transports and devices."""

    @abstractmethod
    def join(self, params: "JoinParams") -> VoiceTransport:
        """Start joining a channel; the transport is returned in SIGNALLING."""
        ...

    @abstractmethod
    def create_device(self, guild_id: DiscordSnowflake) -> AudioDevice:
        ...
