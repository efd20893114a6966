"""SQLite repository implementations."""

from guild_audio.infrastructure.persistence.repositories.cache_repository import (
    SQLiteCacheStore,
)

__all__ = [
    "SQLiteCacheStore",
]
