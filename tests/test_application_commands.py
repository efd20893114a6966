"""
Unit Tests for Application Layer Commands

Tests for:
- PlayQueryCommand validation
- PlayQueryResult factories
- PlayQueryHandler status mapping

Uses mocking to isolate from the session registry.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fakes import make_song
from pydantic import ValidationError

from guild_audio.application.commands.play_query import (
    PlayQueryCommand,
    PlayQueryHandler,
    PlayQueryResult,
    PlayQueryStatus,
)
from guild_audio.domain.music.entities import EnqueueSummary
from guild_audio.domain.music.value_objects import JoinParams, Platform
from guild_audio.domain.shared.exceptions import (
    AudioResourceCreationError,
    ConnectionLostError,
    ConnectionTimeoutError,
    ResolutionNotFoundError,
    SearchNotFoundError,
)
from guild_audio.domain.shared.messages import UserMessages


def make_command(**overrides) -> PlayQueryCommand:
    fields = {
        "guild_id": 111,
        "channel_id": 222,
        "user_id": 333,
        "user_name": "alice",
        "query": "never gonna give you up",
    }
    fields.update(overrides)
    return PlayQueryCommand(**fields)


@pytest.fixture
def session():
    session = MagicMock()
    session.ensure_ready = AsyncMock()
    session.resolve_and_enqueue = AsyncMock(
        return_value=EnqueueSummary.for_song(make_song("dQw4w9WgXcQ", "Never Gonna"), "alice")
    )
    return session


@pytest.fixture
def registry(session):
    registry = MagicMock()
    registry.get.return_value = None
    registry.get_or_create.return_value = session
    return registry


@pytest.fixture
def handler(registry):
    return PlayQueryHandler(registry=registry)


# =============================================================================
# PlayQuery Command Tests
# =============================================================================


class TestPlayQueryCommand:
    """Unit tests for PlayQueryCommand."""

    def test_query_is_stripped(self):
        """Should strip surrounding whitespace from the query."""
        cmd = make_command(query="  lofi  ")
        assert cmd.query == "lofi"

    def test_blank_query_rejected(self):
        """Should reject a query that is only whitespace."""
        with pytest.raises(ValidationError):
            make_command(query="   ")

    def test_channel_may_be_missing(self):
        """Should allow a caller that is not in a voice channel."""
        assert make_command(channel_id=None).channel_id is None

    def test_platform_hint(self):
        assert make_command(platform=Platform.SOUNDCLOUD).platform == Platform.SOUNDCLOUD


class TestPlayQueryResult:
    """Unit tests for PlayQueryResult factories."""

    def test_queued_song_message(self):
        """Should describe a single queued song."""
        summary = EnqueueSummary.for_song(make_song("dQw4w9WgXcQ", "Never Gonna", duration=213), "bob")
        result = PlayQueryResult.queued(summary)

        assert result.is_success
        assert result.message == "Queued **Never Gonna** by Test Artist (3:33)"

    def test_error_result(self):
        result = PlayQueryResult.error(PlayQueryStatus.NOT_FOUND, UserMessages.SONG_NOT_FOUND)
        assert not result.is_success
        assert result.summary is None


# =============================================================================
# PlayQuery Handler Tests
# =============================================================================


class TestPlayQueryHandler:
    """Unit tests for PlayQueryHandler."""

    async def test_creates_session_and_queues(self, handler, registry, session):
        """Should join the caller's channel, wait for it, then enqueue."""
        result = await handler.handle(make_command(platform=Platform.YOUTUBE))

        assert result.status == PlayQueryStatus.QUEUED
        registry.get_or_create.assert_called_once_with(111, JoinParams(111, 222))
        session.ensure_ready.assert_awaited_once()
        session.resolve_and_enqueue.assert_awaited_once_with(
            "never gonna give you up",
            Platform.YOUTUBE,
            requester_id=333,
            requester_name="alice",
        )

    async def test_reuses_existing_session(self, handler, registry, session):
        """Should not join again when the guild already has a session."""
        registry.get.return_value = session

        result = await handler.handle(make_command(channel_id=None))

        assert result.is_success
        registry.get_or_create.assert_not_called()

    async def test_not_in_voice(self, handler, registry):
        """Should refuse to start a session without a voice channel."""
        result = await handler.handle(make_command(channel_id=None))

        assert result.status == PlayQueryStatus.NOT_IN_VOICE
        assert result.message == UserMessages.JOIN_VOICE_CHANNEL
        registry.get_or_create.assert_not_called()

    async def test_connection_timeout(self, handler, session):
        """Should report a voice error and skip resolution when the connection times out."""
        session.ensure_ready.side_effect = ConnectionTimeoutError(111, 20.0)

        result = await handler.handle(make_command())

        assert result.status == PlayQueryStatus.VOICE_ERROR
        assert result.message == UserMessages.FAIL_TO_JOIN_VOICE_CHANNEL
        session.resolve_and_enqueue.assert_not_awaited()

    async def test_connection_lost(self, handler, session):
        session.resolve_and_enqueue.side_effect = ConnectionLostError(111)

        result = await handler.handle(make_command())

        assert result.status == PlayQueryStatus.VOICE_ERROR
        assert result.message == UserMessages.CONNECTION_LOST

    @pytest.mark.parametrize(
        ("error", "message"),
        [
            (ResolutionNotFoundError("x"), UserMessages.SONG_NOT_FOUND),
            (ResolutionNotFoundError("x", entity="playlist"), UserMessages.PLAYLIST_NOT_FOUND),
            (SearchNotFoundError("lofi"), "No results found for: lofi"),
        ],
    )
    async def test_not_found(self, handler, session, error, message):
        """Should map missing media to NOT_FOUND with a specific message."""
        session.resolve_and_enqueue.side_effect = error

        result = await handler.handle(make_command())

        assert result.status == PlayQueryStatus.NOT_FOUND
        assert result.message == message

    async def test_other_domain_errors(self, handler, session):
        session.resolve_and_enqueue.side_effect = AudioResourceCreationError("abc", "boom")

        result = await handler.handle(make_command())

        assert result.status == PlayQueryStatus.RESOLUTION_ERROR
        assert "boom" in result.message
