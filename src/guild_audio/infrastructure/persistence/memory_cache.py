"""Process-local cache store with TTL expiry and bounded size."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from guild_audio.application.interfaces.cache_store import CacheStore
from guild_audio.domain.shared.constants import LimitConstants
from guild_audio.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class InMemoryCacheStore(CacheStore):
    """Insertion-ordered dict of (expires_at, value). Oldest entries are evicted first."""

    def __init__(
        self,
        *,
        max_entries: int = LimitConstants.DEFAULT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[str, tuple[float, str]] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + ttl_seconds, value)
        self._evict()

    async def close(self) -> None:
        self._entries.clear()

    def _evict(self) -> None:
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired[:overflow]:
            del self._entries[key]
        removed = min(len(expired), overflow)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            removed += 1
        logger.debug(LogTemplates.CACHE_EVICTED, removed)
