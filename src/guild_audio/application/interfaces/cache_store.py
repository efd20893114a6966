"""Port interface for the key-value cache used by resolver plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod

from guild_audio.domain.shared.types import NonEmptyStr, PositiveInt


class CacheStore(ABC):
    """String key-value store with per-entry time-to-live."""

    @abstractmethod
    async def get(self, key: NonEmptyStr) -> str | None:
        """Return the value for a key, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: NonEmptyStr, value: str, ttl_seconds: PositiveInt) -> None:
        """Store a value that expires after ttl_seconds."""
        ...

    async def initialize(self) -> None:
        """Prepare backing storage. No-op by default."""

    async def close(self) -> None:
        """Release backing storage. No-op by default."""
