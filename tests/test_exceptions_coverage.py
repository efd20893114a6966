"""
Domain Exception Tests

Tests messages and error codes of the domain exceptions.
"""

from guild_audio.domain.shared.exceptions import (
    AudioResourceCreationError,
    ConnectionLostError,
    ConnectionTimeoutError,
    DomainError,
    InvalidQueuePositionError,
    ResolutionNotFoundError,
    ResolverUnavailableError,
    SearchNotFoundError,
    ValidationError,
)


class TestDomainError:
    def test_domain_error_with_message(self):
        """Should default the code to the class name."""
        error = DomainError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "DomainError"

    def test_domain_error_with_custom_code(self):
        assert DomainError("Custom error", code="CUSTOM_CODE").code == "CUSTOM_CODE"

    def test_validation_error_with_field(self):
        error = ValidationError("Email is required", field="email")

        assert error.field == "email"
        assert error.code == "VALIDATION_ERROR"


class TestQueueErrors:
    def test_invalid_position(self):
        error = InvalidQueuePositionError(position=7, queue_length=3)

        assert isinstance(error, ValidationError)
        assert error.code == "INVALID_QUEUE_POSITION"
        assert error.field == "position"
        assert "7" in str(error)
        assert "3 items" in str(error)


class TestConnectionErrors:
    def test_timeout(self):
        error = ConnectionTimeoutError(guild_id=123, timeout=30.0)

        assert error.code == "CONNECTION_TIMEOUT"
        assert str(error) == "Voice connection for guild 123 not ready after 30s"
        assert error.timeout == 30.0

    def test_lost_default_message(self):
        error = ConnectionLostError(guild_id=123)

        assert error.code == "CONNECTION_LOST"
        assert "guild 123" in str(error)

    def test_lost_custom_message(self):
        assert str(ConnectionLostError(123, "Session closed")) == "Session closed"


class TestResolutionErrors:
    def test_not_found_song(self):
        error = ResolutionNotFoundError("https://youtu.be/missing")

        assert error.code == "NOT_FOUND"
        assert error.entity == "song"
        assert str(error) == "Song not found: https://youtu.be/missing"

    def test_not_found_playlist(self):
        error = ResolutionNotFoundError("PL123", entity="playlist")

        assert str(error) == "Playlist not found: PL123"

    def test_search_not_found(self):
        error = SearchNotFoundError("nothing matches")

        assert error.code == "SEARCH_NOT_FOUND"
        assert error.query == "nothing matches"

    def test_resolver_unavailable(self):
        error = ResolverUnavailableError("soundcloud")

        assert error.code == "RESOLVER_UNAVAILABLE"
        assert "soundcloud" in str(error)

    def test_audio_resource_with_reason(self):
        error = AudioResourceCreationError("dQw4w9WgXcQ", "no stream url")

        assert error.code == "AUDIO_RESOURCE_FAILED"
        assert str(error).endswith(": no stream url")

    def test_audio_resource_without_reason(self):
        error = AudioResourceCreationError("dQw4w9WgXcQ")

        assert str(error) == "Could not create audio resource for dQw4w9WgXcQ"
