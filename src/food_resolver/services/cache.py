"""Persistent result cache with a fixed validity window."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

from food_resolver.domain.food import CacheEntry, CacheStats, ResolutionResult
from food_resolver.services.clock import Clock, SystemClock

DEFAULT_VALIDITY_DAYS = 30
_DAY_MS = 24 * 60 * 60 * 1000

_logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Durable storage for cache entries."""

    def load_entries(self) -> dict[str, CacheEntry]:
        """Return every stored entry keyed by cache key."""

    def save_entry(self, key: str, entry: CacheEntry) -> None:
        """Insert or replace the entry for a key."""

    def delete_all(self) -> None:
        """Remove every stored entry."""


@dataclass
class InMemoryCacheStore(CacheStore):
    """Non-durable store for local runs and tests."""

    entries: dict[str, CacheEntry] = field(default_factory=dict)

    def load_entries(self) -> dict[str, CacheEntry]:
        return dict(self.entries)

    def save_entry(self, key: str, entry: CacheEntry) -> None:
        self.entries[key] = entry

    def delete_all(self) -> None:
        self.entries.clear()


def validity_ms_from_days(days: float) -> int:
    """Convert a validity window in days to milliseconds."""
    return int(days * _DAY_MS)


@dataclass
class ResultCache:
    """In-memory mirror of the durable cache.

    Reads are served from memory only. Writes update memory immediately and
    are persisted in the background; persistence failures are logged and never
    reach the caller. Stale entries are ignored on read and dropped on load,
    but are not purged eagerly.
    """

    store: CacheStore
    clock: Clock = field(default_factory=SystemClock)
    validity_ms: int = validity_ms_from_days(DEFAULT_VALIDITY_DAYS)
    _entries: dict[str, CacheEntry] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _pending: set[asyncio.Task[None]] = field(default_factory=set)

    def load(self) -> int:
        """Load unexpired entries from the durable store; return how many."""
        try:
            stored = self.store.load_entries()
        except Exception:
            _logger.exception("Failed to load result cache from storage")
            return 0
        now = self.clock.now_ms()
        fresh = {
            key: entry
            for key, entry in stored.items()
            if self._is_fresh(entry, now)
        }
        with self._lock:
            self._entries.update(fresh)
        _logger.info(
            "Result cache loaded: entries=%s dropped_expired=%s",
            len(fresh),
            len(stored) - len(fresh),
        )
        return len(fresh)

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if present and still valid."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self.clock.now_ms()):
            return None
        return entry

    def put(self, key: str, result: ResolutionResult) -> CacheEntry:
        """Upsert a result stamped with the current time."""
        entry = CacheEntry(result=result, resolved_at_ms=self.clock.now_ms())
        with self._lock:
            self._entries[key] = entry
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._persist_now(key, entry)
            return entry
        task = loop.create_task(self._persist(key, entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return entry

    async def clear(self) -> None:
        """Remove all entries from memory and durable storage.

        Background writes scheduled before the call finish first so they
        cannot re-create rows after the delete.
        """
        with self._lock:
            self._entries.clear()
        await self.flush()
        try:
            await asyncio.to_thread(self.store.delete_all)
        except Exception:
            _logger.exception("Failed to clear result cache storage")
        _logger.info("Result cache cleared")

    def stats(self) -> CacheStats:
        """Return the number of entries held in memory and their keys."""
        with self._lock:
            keys = list(self._entries)
        return CacheStats(size=len(keys), keys=keys)

    async def flush(self) -> None:
        """Wait for background writes scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def _is_fresh(self, entry: CacheEntry, now_ms: int) -> bool:
        return now_ms - entry.resolved_at_ms < self.validity_ms

    async def _persist(self, key: str, entry: CacheEntry) -> None:
        try:
            await asyncio.to_thread(self.store.save_entry, key, entry)
        except Exception:
            _logger.exception("Failed to persist cache entry: key=%s", key)

    def _persist_now(self, key: str, entry: CacheEntry) -> None:
        try:
            self.store.save_entry(key, entry)
        except Exception:
            _logger.exception("Failed to persist cache entry: key=%s", key)
