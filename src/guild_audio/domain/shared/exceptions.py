"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidQueuePositionError(ValidationError):
    """Raised when a 1-indexed queue position does not address a queued item."""

    def __init__(self, position: int, queue_length: int) -> None:
        msg = f"Position {position} is out of range (queue has {queue_length} items)"
        super().__init__(msg, field="position")
        self.code = "INVALID_QUEUE_POSITION"
        self.position = position
        self.queue_length = queue_length


# === Connection errors ===


class ConnectionTimeoutError(DomainError):
    """The voice connection did not become ready before its deadline."""

    def __init__(self, guild_id: int, timeout: float) -> None:
        super().__init__(
            f"Voice connection for guild {guild_id} not ready after {timeout:g}s",
            code="CONNECTION_TIMEOUT",
        )
        self.guild_id = guild_id
        self.timeout = timeout


class ConnectionLostError(DomainError):
    """The voice connection was torn down and cannot be recovered."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        super().__init__(
            message or f"Voice connection for guild {guild_id} was lost",
            code="CONNECTION_LOST",
        )
        self.guild_id = guild_id


# === Resolution errors ===


class ResolutionNotFoundError(DomainError):
    """A reference does not resolve to playable media."""

    def __init__(self, reference: str, entity: str = "song") -> None:
        super().__init__(f"{entity.capitalize()} not found: {reference}", code="NOT_FOUND")
        self.reference = reference
        self.entity = entity


class SearchNotFoundError(DomainError):
    """A text search produced no results."""

    def __init__(self, query: str) -> None:
        super().__init__(f"No results found for: {query}", code="SEARCH_NOT_FOUND")
        self.query = query


class ResolverUnavailableError(DomainError):
    """No resolver plugin is registered for the requested platform."""

    def __init__(self, platform: str) -> None:
        super().__init__(
            f"Resolver for platform {platform} not initialized", code="RESOLVER_UNAVAILABLE"
        )
        self.platform = platform


class AudioResourceCreationError(DomainError):
    """A playable audio resource could not be produced for a song."""

    def __init__(self, song_id: str, reason: str | None = None) -> None:
        msg = f"Could not create audio resource for {song_id}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="AUDIO_RESOURCE_FAILED")
        self.song_id = song_id
