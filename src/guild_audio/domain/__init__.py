"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages, events and exceptions
- music/: Song, playlist, queue and connection vocabulary
"""

from guild_audio.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
