"""MediaResolver implementations for YouTube and SoundCloud built on yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Final, TypeVar, cast

import discord
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from guild_audio.application.interfaces.media_resolver import MediaResolver
from guild_audio.config.settings import ResolverSettings
from guild_audio.domain.music.entities import Playlist, Song
from guild_audio.domain.music.services import MediaClassifier
from guild_audio.domain.music.value_objects import MediaType, Platform
from guild_audio.domain.shared.constants import CacheKeys
from guild_audio.domain.shared.exceptions import (
    AudioResourceCreationError,
    ResolutionNotFoundError,
    SearchNotFoundError,
)
from guild_audio.domain.shared.messages import ErrorMessages, LogTemplates
from guild_audio.infrastructure.audio.models import (
    CachedPlaylist,
    YtDlpOpts,
    YtDlpPlaylistInfo,
    YtDlpTrackInfo,
)

if TYPE_CHECKING:
    from guild_audio.application.interfaces.cache_store import CacheStore
    from guild_audio.infrastructure.audio.ffmpeg_source import FFmpegSourceFactory

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

MAX_TITLE_LENGTH: Final[int] = 500
UNAVAILABLE_TITLES: Final[frozenset[str]] = frozenset({"[Private video]", "[Deleted video]"})


class YtDlpResolver(MediaResolver):
    """Shared yt-dlp plumbing: caching, extraction in worker threads, model mapping.

    Subclasses describe one platform: its cache keys, search prefix,
    how ids map to URLs and back.
    """

    PLATFORM: ClassVar[Platform]
    ITEM_TYPE: ClassVar[MediaType]
    PLAYLIST_TYPE: ClassVar[MediaType]
    SONG_KEY: ClassVar[str]
    PLAYLIST_KEY: ClassVar[str]
    SEARCH_PREFIX: ClassVar[str]
    BARE_ITEM_ID: ClassVar[re.Pattern[str]]
    BARE_PLAYLIST_ID: ClassVar[re.Pattern[str]]
    FLAT_PLAYLISTS: ClassVar[bool] = True

    def __init__(
        self,
        *,
        cache: CacheStore,
        source_factory: FFmpegSourceFactory,
        settings: ResolverSettings | None = None,
    ) -> None:
        self._settings = settings or ResolverSettings()
        self._cache = cache
        self._source_factory = source_factory
        self._ttl = self._settings.cache_ttl_seconds
        self._base_opts = YtDlpOpts(
            format=self._settings.ytdlp_format,
            socket_timeout=self._settings.socket_timeout,
        )

    @property
    def platform(self) -> Platform:
        return self.PLATFORM

    # === Platform hooks ===

    @abstractmethod
    def song_url(self, song_id: str) -> str:
        ...

    @abstractmethod
    def playlist_url(self, playlist_id: str) -> str:
        ...

    @abstractmethod
    def song_id_from_info(self, info: YtDlpTrackInfo) -> str | None:
        ...

    # === MediaResolver ===

    async def get_song(self, reference: str) -> Song:
        song_id = self._reference_id(self.ITEM_TYPE, self.BARE_ITEM_ID, reference)
        if song_id is None:
            raise ResolutionNotFoundError(reference)

        key = self.SONG_KEY.format(id=song_id)
        cached = await self._cached(key, Song)
        if cached is not None:
            return cached

        info = await asyncio.to_thread(self._extract_info_sync, self.song_url(song_id))
        song = self._info_to_song(info, fallback_id=song_id) if info else None
        if song is None:
            raise ResolutionNotFoundError(reference)

        await self._store(key, song)
        return song

    async def get_playlist(self, reference: str) -> Playlist:
        playlist_id = self._reference_id(self.PLAYLIST_TYPE, self.BARE_PLAYLIST_ID, reference)
        if playlist_id is None:
            raise ResolutionNotFoundError(reference, entity="playlist")

        key = self.PLAYLIST_KEY.format(id=playlist_id)
        cached = await self._cached(key, CachedPlaylist)
        if cached is not None:
            songs = await self._hydrate(cached.song_ids)
            if songs:
                return Playlist(
                    id=cached.id,
                    title=cached.title,
                    author=cached.author,
                    thumbnail=cached.thumbnail,
                    url=cached.url,
                    platform=self.PLATFORM,
                    songs=songs,
                )

        info = await asyncio.to_thread(self._extract_playlist_sync, self.playlist_url(playlist_id))
        if info is None:
            raise ResolutionNotFoundError(reference, entity="playlist")

        songs = []
        for entry in info.entries:
            song = self._info_to_song(entry)
            if song is None:
                logger.debug(LogTemplates.RESOLVER_SKIPPED_ENTRY, entry.id, entry.title)
                continue
            songs.append(song)
            await self._store(self.SONG_KEY.format(id=song.id), song)

        if not songs:
            raise ResolutionNotFoundError(reference, entity="playlist")

        thumbnail = info.best_thumbnail or songs[0].thumbnail
        url = info.webpage_url or self.playlist_url(playlist_id)
        title = info.title[:MAX_TITLE_LENGTH]
        await self._store(
            key,
            CachedPlaylist(
                id=playlist_id,
                title=title,
                author=info.author,
                thumbnail=thumbnail,
                url=url,
                song_ids=[song.id for song in songs],
            ),
        )
        logger.info(LogTemplates.RESOLVER_RESOLVED, "playlist", title, self.PLATFORM.value)
        return Playlist(
            id=playlist_id,
            title=title,
            author=info.author,
            thumbnail=thumbnail,
            url=url,
            platform=self.PLATFORM,
            songs=songs,
        )

    async def search(self, text: str) -> Song:
        info = await asyncio.to_thread(self._search_sync, text)
        song = self._info_to_song(info) if info else None
        if song is None:
            raise SearchNotFoundError(text)

        await self._store(self.SONG_KEY.format(id=song.id), song)
        return song

    async def create_audio_resource(self, song: Song) -> discord.AudioSource:
        info = await asyncio.to_thread(self._extract_info_sync, song.url)
        stream_url = info.stream_url if info else None
        if not stream_url:
            raise AudioResourceCreationError(
                song.id, ErrorMessages.NO_STREAM_URL_FOR_SONG.format(title=song.title)
            )
        try:
            return self._source_factory.create(stream_url)
        except (discord.ClientException, ValueError) as e:
            raise AudioResourceCreationError(song.id, str(e)) from e

    # === Cache helpers ===

    async def _cached(self, key: str, model: type[M]) -> M | None:
        raw = await self._cache.get(key)
        if raw is None:
            logger.debug(LogTemplates.CACHE_MISS, key)
            return None
        try:
            value = model.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.CACHE_ENTRY_CORRUPT, key, e)
            return None
        logger.debug(LogTemplates.CACHE_HIT, key)
        return value

    async def _store(self, key: str, value: BaseModel) -> None:
        await self._cache.set(key, value.model_dump_json(), self._ttl)
        logger.debug(LogTemplates.CACHE_STORED, key, self._ttl)

    async def _hydrate(self, song_ids: list[str]) -> list[Song]:
        songs: list[Song] = []
        for song_id in song_ids:
            try:
                songs.append(await self.get_song(song_id))
            except ResolutionNotFoundError as e:
                logger.debug(LogTemplates.RESOLVER_SKIPPED_ENTRY, song_id, e.message)
        return songs

    # === yt-dlp plumbing ===

    def _reference_id(
        self, media_type: MediaType, bare_pattern: re.Pattern[str], reference: str
    ) -> str | None:
        found = MediaClassifier.extract_id(media_type, reference)
        if found:
            return found
        reference = reference.strip()
        if bare_pattern.fullmatch(reference):
            return reference
        return None

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self) -> YtDlpOpts:
        return self._get_opts(
            noplaylist=False,
            extract_flat="in_playlist" if self.FLAT_PLAYLISTS else False,
            ignoreerrors=True,
        )

    def _run_sync(self, target: str, opts: YtDlpOpts) -> dict[str, Any] | None:
        try:
            with YoutubeDL(params=cast(Any, opts.model_dump(exclude_none=True))) as ydl:
                data = ydl.extract_info(target, download=False)
        except YoutubeDLError as e:
            logger.warning(LogTemplates.RESOLVER_EXTRACT_FAILED, target, e)
            return None
        return dict(data) if isinstance(data, dict) else None

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        data = self._run_sync(url, self._get_opts())
        if data is None:
            return None
        try:
            return YtDlpTrackInfo.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.RESOLVER_EXTRACT_FAILED, url, e)
            return None

    def _extract_playlist_sync(self, url: str) -> YtDlpPlaylistInfo | None:
        data = self._run_sync(url, self._get_playlist_opts())
        if data is None:
            return None
        try:
            return YtDlpPlaylistInfo.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.RESOLVER_EXTRACT_FAILED, url, e)
            return None

    def _search_sync(self, text: str) -> YtDlpTrackInfo | None:
        data = self._run_sync(f"{self.SEARCH_PREFIX}1:{text}", self._get_opts())
        if data is None:
            return None
        entries = data.get("entries") or []
        first = next((e for e in entries if isinstance(e, dict)), None)
        if first is None:
            return None
        try:
            return YtDlpTrackInfo.model_validate(first)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.RESOLVER_EXTRACT_FAILED, text, e)
            return None

    def _info_to_song(self, info: YtDlpTrackInfo, fallback_id: str | None = None) -> Song | None:
        if info.title in UNAVAILABLE_TITLES:
            return None
        song_id = self.song_id_from_info(info) or fallback_id
        if not song_id:
            return None
        try:
            return Song(
                id=song_id,
                title=info.title[:MAX_TITLE_LENGTH],
                author=info.author,
                thumbnail=info.best_thumbnail,
                duration_seconds=info.duration or 0,
                url=info.webpage_url or self.song_url(song_id),
                platform=self.PLATFORM,
            )
        except PydanticValidationError as e:
            logger.warning(LogTemplates.RESOLVER_SKIPPED_ENTRY, song_id, e)
            return None


class YouTubeResolver(YtDlpResolver):
    """YouTube videos and playlists."""

    PLATFORM = Platform.YOUTUBE
    ITEM_TYPE = MediaType.YOUTUBE_VIDEO
    PLAYLIST_TYPE = MediaType.YOUTUBE_PLAYLIST
    SONG_KEY = CacheKeys.YOUTUBE_SONG
    PLAYLIST_KEY = CacheKeys.YOUTUBE_PLAYLIST
    SEARCH_PREFIX = "ytsearch"
    BARE_ITEM_ID = re.compile(r"[\w-]{11}")
    BARE_PLAYLIST_ID = re.compile(r"(?:PL|OL|UU|RD|LL|FL)[\w-]{8,}")
    FLAT_PLAYLISTS = True

    def song_url(self, song_id: str) -> str:
        return f"https://www.youtube.com/watch?v={song_id}"

    def playlist_url(self, playlist_id: str) -> str:
        return f"https://www.youtube.com/playlist?list={playlist_id}"

    def song_id_from_info(self, info: YtDlpTrackInfo) -> str | None:
        if info.id and self.BARE_ITEM_ID.fullmatch(info.id):
            return info.id
        for url in (info.webpage_url, info.url):
            if url:
                found = MediaClassifier.extract_id(MediaType.YOUTUBE_VIDEO, url)
                if found:
                    return found
        return None


class SoundCloudResolver(YtDlpResolver):
    """SoundCloud tracks and sets. Ids are URL paths: ``user/track``, ``user/sets/name``."""

    PLATFORM = Platform.SOUNDCLOUD
    ITEM_TYPE = MediaType.SOUNDCLOUD_TRACK
    PLAYLIST_TYPE = MediaType.SOUNDCLOUD_PLAYLIST
    SONG_KEY = CacheKeys.SOUNDCLOUD_SONG
    PLAYLIST_KEY = CacheKeys.SOUNDCLOUD_PLAYLIST
    SEARCH_PREFIX = "scsearch"
    BARE_ITEM_ID = re.compile(r"[\w-]+/(?!sets$)[\w-]+")
    BARE_PLAYLIST_ID = re.compile(r"[\w-]+/sets/[\w-]+")
    # Flat set entries only carry API URLs, so sets are extracted in full.
    FLAT_PLAYLISTS = False

    def song_url(self, song_id: str) -> str:
        return f"https://soundcloud.com/{song_id}"

    def playlist_url(self, playlist_id: str) -> str:
        return f"https://soundcloud.com/{playlist_id}"

    def song_id_from_info(self, info: YtDlpTrackInfo) -> str | None:
        if not info.webpage_url:
            return None
        return MediaClassifier.extract_id(MediaType.SOUNDCLOUD_TRACK, info.webpage_url)
