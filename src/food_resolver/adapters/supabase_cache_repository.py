"""Supabase-backed durable store for resolution cache entries."""

import logging
from dataclasses import dataclass

from supabase import Client

from food_resolver.domain.errors import CachePersistenceError
from food_resolver.domain.food import CacheEntry, ResolutionResult
from food_resolver.services.cache import CacheStore

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseCacheRepository(CacheStore):
    """Supabase implementation of the cache store."""

    client: Client
    table_name: str = "food_resolution_cache"

    def load_entries(self) -> dict[str, CacheEntry]:
        """Return every stored entry, skipping rows that cannot be decoded."""
        try:
            response = (
                self.client.table(self.table_name)
                .select("cache_key, result_json, resolved_at_ms")
                .execute()
            )
        except Exception as exc:
            raise CachePersistenceError(f"Failed to read cache rows: {exc}") from exc
        entries: dict[str, CacheEntry] = {}
        for row in response.data or []:
            try:
                entries[str(row["cache_key"])] = CacheEntry(
                    result=ResolutionResult.from_dict(row["result_json"]),
                    resolved_at_ms=int(row["resolved_at_ms"]),
                )
            except (AttributeError, KeyError, TypeError, ValueError):
                _logger.warning("Skipping malformed cache row: %s", row.get("cache_key"))
        return entries

    def save_entry(self, key: str, entry: CacheEntry) -> None:
        """Upsert a cache row."""
        try:
            self.client.table(self.table_name).upsert(
                {
                    "cache_key": key,
                    "result_json": entry.result.to_dict(),
                    "resolved_at_ms": entry.resolved_at_ms,
                },
                on_conflict="cache_key",
            ).execute()
        except Exception as exc:
            raise CachePersistenceError(f"Failed to write cache row {key}: {exc}") from exc

    def delete_all(self) -> None:
        """Delete every cache row."""
        try:
            self.client.table(self.table_name).delete().neq("cache_key", "").execute()
        except Exception as exc:
            raise CachePersistenceError(f"Failed to delete cache rows: {exc}") from exc
