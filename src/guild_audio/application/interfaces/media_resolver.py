"""Port interface for per-platform media lookup, search and audio resource creation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from guild_audio.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import Playlist, Song
    from ...domain.music.value_objects import Platform

# Opaque to the application layer; the audio device knows how to play it.
AudioResource = Any


class MediaResolver(ABC):
    """Interface implemented once per source platform.

    Failures surface as ``ResolutionNotFoundError`` (reference does not resolve),
    ``SearchNotFoundError`` (zero results) and ``AudioResourceCreationError``.
    """

    @property
    @abstractmethod
    def platform(self) -> "Platform":
        """The platform tag this resolver is registered under."""
        ...

    @abstractmethod
    async def get_song(self, reference: NonEmptyStr) -> "Song":
        """Resolve a URL or id to a single song."""
        ...

    @abstractmethod
    async def get_playlist(self, reference: NonEmptyStr) -> "Playlist":
        """Resolve a URL or id to a playlist with its songs."""
        ...

    @abstractmethod
    async def search(self, text: NonEmptyStr) -> "Song":
        """Return the best match for free text."""
        ...

    @abstractmethod
    async def create_audio_resource(self, song: "Song") -> AudioResource:
        """Produce a playable audio resource for a song."""
        ...
