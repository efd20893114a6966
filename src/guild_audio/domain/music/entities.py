"""Core domain entities for the music bounded context."""

from __future__ import annotations

import random
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from guild_audio.domain.music.value_objects import EnqueueKind, Platform
from guild_audio.domain.shared.datetime_utils import format_duration, utcnow
from guild_audio.domain.shared.exceptions import InvalidQueuePositionError
from guild_audio.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    SongTitleStr,
    UtcDatetimeField,
)


class Song(BaseModel):
    """Immutable value object representing a playable song."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: NonEmptyStr
    title: SongTitleStr
    author: NonEmptyStr
    thumbnail: HttpUrlStr | None = None
    duration_seconds: DurationSeconds = 0
    url: HttpUrlStr
    platform: Platform

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        return format_duration(self.duration_seconds)


class Playlist(BaseModel):
    """An ordered collection of songs from one platform."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: NonEmptyStr
    title: SongTitleStr
    author: NonEmptyStr
    thumbnail: HttpUrlStr | None = None
    url: HttpUrlStr | None = None
    platform: Platform
    songs: list[Song] = Field(default_factory=list)

    @property
    def total_duration_seconds(self) -> int:
        return sum(song.duration_seconds for song in self.songs)


class QueueItem(BaseModel):
    """A song paired with whoever asked for it."""

    model_config = ConfigDict(frozen=True, strict=True)

    song: Song
    requester_id: DiscordSnowflake
    requester_name: NonEmptyStr
    requested_at: UtcDatetimeField = Field(default_factory=utcnow)

    @classmethod
    def for_songs(
        cls, songs: Iterable[Song], requester_id: int, requester_name: str
    ) -> list[QueueItem]:
        """Wrap each song with the same requester, preserving order."""
        requested_at = utcnow()
        return [
            cls(
                song=song,
                requester_id=requester_id,
                requester_name=requester_name,
                requested_at=requested_at,
            )
            for song in songs
        ]


class PlaybackQueue(BaseModel):
    """Mutable queue state for one session.

    ``playing`` is never also present in ``items``: taking the head of the
    queue moves it out of ``items`` in the same step.
    """

    model_config = ConfigDict(strict=True)

    items: list[QueueItem] = Field(default_factory=list)
    playing: QueueItem | None = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def snapshot(self) -> tuple[QueueItem, ...]:
        return tuple(self.items)

    def extend(self, items: Iterable[QueueItem]) -> int:
        """Append items to the tail and return the new queue length."""
        self.items.extend(items)
        return len(self.items)

    def pop_next(self) -> QueueItem | None:
        """Move the head of the queue into ``playing``, or clear it if the queue is empty."""
        self.playing = self.items.pop(0) if self.items else None
        return self.playing

    def _index_for(self, position: int) -> int:
        if not 1 <= position <= len(self.items):
            raise InvalidQueuePositionError(position, len(self.items))
        return position - 1

    def move_to_front(self, position: int) -> QueueItem:
        """Move the item at a 1-indexed position ahead of every other queued item."""
        index = self._index_for(position)
        item = self.items.pop(index)
        self.items.insert(0, item)
        return item

    def remove_at(self, position: int) -> QueueItem:
        """Remove and return the item at a 1-indexed position."""
        return self.items.pop(self._index_for(position))

    def shuffle(self, rng: random.Random | None = None) -> None:
        """Replace the queue with a uniformly random permutation of itself."""
        (rng or random).shuffle(self.items)

    def clear(self) -> int:
        """Drop every queued item and the current one; return how many were queued."""
        count = len(self.items)
        self.items.clear()
        self.playing = None
        return count


class EnqueueSummary(BaseModel):
    """What a play request added, for user-facing confirmation."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: SongTitleStr
    author: NonEmptyStr
    thumbnail: HttpUrlStr | None = None
    url: HttpUrlStr | None = None
    item_count: NonNegativeInt
    duration_seconds: DurationSeconds = 0
    kind: EnqueueKind
    platform: Platform
    requester_name: NonEmptyStr

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_seconds)

    @classmethod
    def for_song(cls, song: Song, requester_name: str) -> EnqueueSummary:
        return cls(
            title=song.title,
            author=song.author,
            thumbnail=song.thumbnail,
            url=song.url,
            item_count=1,
            duration_seconds=song.duration_seconds,
            kind=EnqueueKind.for_song(song.platform),
            platform=song.platform,
            requester_name=requester_name,
        )

    @classmethod
    def for_playlist(cls, playlist: Playlist, requester_name: str) -> EnqueueSummary:
        return cls(
            title=playlist.title,
            author=playlist.author,
            thumbnail=playlist.thumbnail,
            url=playlist.url,
            item_count=len(playlist.songs),
            duration_seconds=playlist.total_duration_seconds,
            kind=EnqueueKind.PLAYLIST,
            platform=playlist.platform,
            requester_name=requester_name,
        )
