"""Command and handler for playing a query or URL in a guild's voice channel."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from ...domain.music.entities import EnqueueSummary
from ...domain.music.value_objects import EnqueueKind, JoinParams, Platform
from ...domain.shared.exceptions import (
    ConnectionLostError,
    ConnectionTimeoutError,
    DomainError,
    ResolutionNotFoundError,
    SearchNotFoundError,
)
from ...domain.shared.messages import LogTemplates, UserMessages
from ...domain.shared.types import DiscordSnowflake, NonEmptyStr

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class PlayQueryStatus(Enum):
    """Status codes for play query results."""

    QUEUED = "queued"
    NOT_IN_VOICE = "not_in_voice"
    VOICE_ERROR = "voice_error"
    NOT_FOUND = "not_found"
    RESOLUTION_ERROR = "resolution_error"


class PlayQueryCommand(BaseModel):
    """Request to join (or reuse) a session, resolve a query and queue the result."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake | None
    user_id: DiscordSnowflake
    user_name: NonEmptyStr
    query: NonEmptyStr
    platform: Platform | None = None

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class PlayQueryResult(BaseModel):
    """Result of a play query command."""

    model_config = ConfigDict(frozen=True, strict=True)

    status: PlayQueryStatus
    message: str
    summary: EnqueueSummary | None = None

    @property
    def is_success(self) -> bool:
        return self.status == PlayQueryStatus.QUEUED

    @classmethod
    def queued(cls, summary: EnqueueSummary) -> PlayQueryResult:
        if summary.kind == EnqueueKind.PLAYLIST:
            message = UserMessages.QUEUED_PLAYLIST.format(
                title=summary.title,
                author=summary.author,
                count=summary.item_count,
                duration=summary.duration_formatted,
            )
        else:
            message = UserMessages.QUEUED_SONG.format(
                title=summary.title,
                author=summary.author,
                duration=summary.duration_formatted,
            )
        return cls(status=PlayQueryStatus.QUEUED, message=message, summary=summary)

    @classmethod
    def error(cls, status: PlayQueryStatus, message: str) -> PlayQueryResult:
        return cls(status=status, message=message)


class PlayQueryHandler:
    """Joins or reuses the guild's session, waits for the connection, then enqueues."""

    def __init__(self, *, registry: SessionRegistry) -> None:
        self._registry = registry

    async def handle(self, command: PlayQueryCommand) -> PlayQueryResult:
        logger.info(
            LogTemplates.PLAY_QUERY_RECEIVED, command.user_name, command.guild_id, command.query
        )

        session = self._registry.get(command.guild_id)
        if session is None:
            if command.channel_id is None:
                return PlayQueryResult.error(
                    PlayQueryStatus.NOT_IN_VOICE, UserMessages.JOIN_VOICE_CHANNEL
                )
            session = self._registry.get_or_create(
                command.guild_id, JoinParams(command.guild_id, command.channel_id)
            )

        try:
            await session.ensure_ready()
            summary = await session.resolve_and_enqueue(
                command.query,
                command.platform,
                requester_id=command.user_id,
                requester_name=command.user_name,
            )
        except ConnectionTimeoutError as e:
            logger.warning(LogTemplates.PLAY_QUERY_VOICE_ERROR, command.guild_id, e.message)
            return PlayQueryResult.error(
                PlayQueryStatus.VOICE_ERROR, UserMessages.FAIL_TO_JOIN_VOICE_CHANNEL
            )
        except ConnectionLostError as e:
            logger.warning(LogTemplates.PLAY_QUERY_VOICE_ERROR, command.guild_id, e.message)
            return PlayQueryResult.error(PlayQueryStatus.VOICE_ERROR, UserMessages.CONNECTION_LOST)
        except ResolutionNotFoundError as e:
            logger.info(LogTemplates.PLAY_QUERY_NOT_FOUND, command.query, command.guild_id, e.message)
            message = (
                UserMessages.PLAYLIST_NOT_FOUND
                if e.entity == "playlist"
                else UserMessages.SONG_NOT_FOUND
            )
            return PlayQueryResult.error(PlayQueryStatus.NOT_FOUND, message)
        except SearchNotFoundError as e:
            logger.info(LogTemplates.PLAY_QUERY_NOT_FOUND, command.query, command.guild_id, e.message)
            return PlayQueryResult.error(
                PlayQueryStatus.NOT_FOUND, UserMessages.SEARCH_NOT_FOUND.format(query=e.query)
            )
        except DomainError as e:
            logger.warning(LogTemplates.PLAY_QUERY_FAILED, command.guild_id, e.message)
            return PlayQueryResult.error(
                PlayQueryStatus.RESOLUTION_ERROR, UserMessages.FAIL_TO_RESOLVE.format(reason=e.message)
            )

        return PlayQueryResult.queued(summary)
