"""SQLite implementation of the resolver cache store."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from guild_audio.application.interfaces.cache_store import CacheStore
from guild_audio.domain.shared.constants import LimitConstants
from guild_audio.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteCacheStore(CacheStore):
    """Persistent key-value cache. Expiry is a unix timestamp checked on read."""

    def __init__(
        self,
        database: Database,
        *,
        max_entries: int = LimitConstants.DEFAULT_CACHE_MAX_ENTRIES,
    ) -> None:
        self._db = database
        self._max_entries = max_entries

    async def initialize(self) -> None:
        await self._db.initialize()
        await self.cleanup_expired()

    async def close(self) -> None:
        await self._db.close()

    async def get(self, key: str) -> str | None:
        row = await self._db.fetch_one(
            "SELECT value FROM media_cache WHERE cache_key = ? AND expires_at > ?",
            (key, time.time()),
        )
        if row is None:
            return None
        return row["value"]

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._db.execute(
            """
            INSERT INTO media_cache (cache_key, value, expires_at)
            VALUES (?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                value = excluded.value,
                expires_at = excluded.expires_at
            """,
            (key, value, time.time() + int(ttl_seconds)),
        )
        await self.prune(self._max_entries)

    async def delete(self, key: str) -> bool:
        deleted = await self._db.execute("DELETE FROM media_cache WHERE cache_key = ?", (key,))
        return deleted > 0

    async def cleanup_expired(self) -> int:
        removed = await self._db.execute(
            "DELETE FROM media_cache WHERE expires_at <= ?", (time.time(),)
        )
        if removed:
            logger.info(LogTemplates.CACHE_EXPIRED_PRUNED, removed)
        return removed

    async def prune(self, max_entries: int) -> int:
        """Drop the entries closest to expiry until at most max_entries remain."""
        count = await self.count()
        if count <= max_entries:
            return 0

        entries_to_prune = count - max_entries
        await self._db.execute(
            """
            DELETE FROM media_cache
            WHERE cache_key IN (
                SELECT cache_key FROM media_cache
                ORDER BY expires_at ASC
                LIMIT ?
            )
            """,
            (entries_to_prune,),
        )
        logger.debug(LogTemplates.CACHE_EVICTED, entries_to_prune)
        return entries_to_prune

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) as count FROM media_cache")
        return row["count"] if row else 0
