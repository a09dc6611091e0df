"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field

import pytest

from food_resolver.adapters.supabase_cache_repository import SupabaseCacheRepository
from food_resolver.domain.errors import CachePersistenceError
from food_resolver.domain.food import CacheEntry, ResolutionResult
from tests.conftest import START_MS, make_record


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "delete": []}
    )
    last_payload: object | None = None
    last_options: dict[str, object] = field(default_factory=dict)
    last_columns: str | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, columns: str) -> "FakeTable":
        self._action = "select"
        self.last_columns = columns
        return self

    def upsert(self, payload, **options) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = options
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def neq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("neq", column, value))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.executed.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


@dataclass
class BrokenSupabaseClient:
    def table(self, name: str) -> FakeTable:
        raise ConnectionError(f"cannot reach {name}")


def _entry() -> CacheEntry:
    result = ResolutionResult.ok(
        make_record(), source_name="OpenFoodFacts", trust_score=0.95
    )
    return CacheEntry(result=result, resolved_at_ms=START_MS)


def test_save_entry_upserts_on_cache_key() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseCacheRepository(client)  # type: ignore[arg-type]
    entry = _entry()

    repository.save_entry("barcode_049000006346", entry)

    table = client.tables["food_resolution_cache"]
    assert table.last_payload == {
        "cache_key": "barcode_049000006346",
        "result_json": entry.result.to_dict(),
        "resolved_at_ms": START_MS,
    }
    assert table.last_options == {"on_conflict": "cache_key"}


def test_load_entries_decodes_rows_and_skips_malformed() -> None:
    client = FakeSupabaseClient()
    table = client.table("custom_cache")
    entry = _entry()
    table.queue(
        "select",
        [
            {
                "cache_key": "barcode_049000006346",
                "result_json": entry.result.to_dict(),
                "resolved_at_ms": START_MS,
            },
            {"cache_key": "broken", "result_json": {"success": True}, "resolved_at_ms": 1},
            {"cache_key": "garbled", "result_json": "not-json", "resolved_at_ms": 1},
            {"cache_key": "no-timestamp", "result_json": entry.result.to_dict()},
        ],
    )
    repository = SupabaseCacheRepository(client, table_name="custom_cache")  # type: ignore[arg-type]

    entries = repository.load_entries()

    assert list(entries) == ["barcode_049000006346"]
    assert entries["barcode_049000006346"] == entry
    assert table.last_columns == "cache_key, result_json, resolved_at_ms"


def test_delete_all_removes_every_row() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseCacheRepository(client)  # type: ignore[arg-type]

    repository.delete_all()

    table = client.tables["food_resolution_cache"]
    assert table.executed == ["delete"]
    assert table.last_filters == [("neq", "cache_key", "")]


def test_storage_errors_become_cache_persistence_errors() -> None:
    repository = SupabaseCacheRepository(BrokenSupabaseClient())  # type: ignore[arg-type]

    with pytest.raises(CachePersistenceError):
        repository.load_entries()
    with pytest.raises(CachePersistenceError):
        repository.save_entry("key", _entry())
    with pytest.raises(CachePersistenceError):
        repository.delete_all()
