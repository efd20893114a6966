"""
Shared Domain Kernel

Contains types, messages, events and exceptions shared across the package.
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

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidQueuePositionError",
    "ConnectionTimeoutError",
    "ConnectionLostError",
    "ResolutionNotFoundError",
    "SearchNotFoundError",
    "ResolverUnavailableError",
    "AudioResourceCreationError",
]
