"""
Music Domain Services

Domain services containing business logic that doesn't naturally fit
within a single entity or value object.
"""

from __future__ import annotations

import re
from typing import ClassVar

from guild_audio.domain.music.value_objects import MediaType, Platform

_SCHEME = r"^(?:https?://)?"


class MediaClassifier:
    """Matches queries against every platform's URL shapes.

    A single query can carry more than one tag, e.g. a YouTube watch URL
    with a ``list=`` parameter is both a video and a playlist.
    """

    PATTERNS: ClassVar[dict[MediaType, re.Pattern[str]]] = {
        MediaType.YOUTUBE_PLAYLIST: re.compile(
            _SCHEME + r"(?:(?:www\.|m\.|music\.)?youtube\.com|youtu\.be)/\S*?[?&]list=([\w-]+)",
            re.IGNORECASE,
        ),
        MediaType.YOUTUBE_VIDEO: re.compile(
            _SCHEME
            + r"(?:(?:www\.|m\.|music\.)?youtube\.com/(?:watch\?(?:\S*?&)?v=|embed/|shorts/|live/)"
            + r"|youtu\.be/)([\w-]{11})",
            re.IGNORECASE,
        ),
        MediaType.SOUNDCLOUD_PLAYLIST: re.compile(
            _SCHEME + r"(?:www\.|m\.)?soundcloud\.com/([\w-]+)/sets/([\w-]+)",
            re.IGNORECASE,
        ),
        MediaType.SOUNDCLOUD_TRACK: re.compile(
            _SCHEME + r"(?:www\.|m\.)?soundcloud\.com/([\w-]+)/(?!sets(?:[/?#]|$))([\w-]+)",
            re.IGNORECASE,
        ),
    }

    @classmethod
    def classify(cls, query: str) -> frozenset[MediaType]:
        """Return every media type whose URL shape the query matches.

        Args:
            query: A URL or free search text.

        Returns:
            The matching tags; empty for plain search text.
        """
        text = query.strip()
        return frozenset(
            media_type for media_type, pattern in cls.PATTERNS.items() if pattern.search(text)
        )

    @classmethod
    def platforms(cls, tags: frozenset[MediaType]) -> frozenset[Platform]:
        return frozenset(tag.platform for tag in tags)

    @classmethod
    def extract_id(cls, media_type: MediaType, query: str) -> str | None:
        """Pull the platform id for a media type out of a URL.

        SoundCloud has no short ids in URLs, so its ids are the path
        (``user/track`` or ``user/sets/name``).

        Returns:
            The id, or None if the query does not have that shape.
        """
        match = cls.PATTERNS[media_type].search(query.strip())
        if match is None:
            return None
        if media_type == MediaType.SOUNDCLOUD_PLAYLIST:
            return f"{match.group(1)}/sets/{match.group(2)}".lower()
        if media_type == MediaType.SOUNDCLOUD_TRACK:
            return f"{match.group(1)}/{match.group(2)}".lower()
        return match.group(1)
