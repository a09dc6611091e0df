"""Shared test fixtures."""

import asyncio
import logging
from dataclasses import dataclass, field

import pytest

from food_resolver.config import Settings
from food_resolver.containers import AppContainer
from food_resolver.domain.errors import CachePersistenceError
from food_resolver.domain.food import (
    CacheEntry,
    FoodRecord,
    NutritionFacts,
    ResolutionResult,
)
from food_resolver.domain.sources import AccessPolicy, SourceDescriptor
from food_resolver.services.cache import InMemoryCacheStore, ResultCache
from food_resolver.services.identifiers import NormalizedIdentifier
from food_resolver.services.rate_limiter import RateLimiter
from food_resolver.services.resolver import FoodResolver
from food_resolver.sources.local_fallback import LocalFallbackSource

START_MS = 1_700_000_000_000


@dataclass
class FakeClock:
    """Manually advanced clock."""

    current_ms: int = START_MS

    def now_ms(self) -> int:
        return self.current_ms

    def advance(self, milliseconds: int) -> None:
        self.current_ms += milliseconds


def make_record(  # noqa: PLR0913
    name: str = "Oat Crunch Bar",
    brand: str = "Acme Foods",
    ingredients: tuple[str, ...] = ("Oats", "Honey", "Salt"),
    sugars_g: float = 8.0,
    serving_size_g: float = 40.0,
    with_nutrition: bool = True,
) -> FoodRecord:
    return FoodRecord(
        product_name=name,
        brand=brand,
        ingredients=ingredients,
        nutrition=NutritionFacts(
            total_carbs_g=24.0, fiber_g=3.0, sugars_g=sugars_g, protein_g=4.0
        )
        if with_nutrition
        else None,
        serving_size_g=serving_size_g,
    )


@dataclass
class StubSource:
    """Source returning scripted outcomes and counting calls."""

    descriptor: SourceDescriptor
    outcome: ResolutionResult | Exception | None = None
    delay_seconds: float = 0.0
    calls: list[str] = field(default_factory=list)

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        self.calls.append(identifier.value)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        if self.outcome is None:
            return ResolutionResult.failure(
                f"{self.descriptor.name}: Product not found",
                source_name=self.descriptor.name,
            )
        return self.outcome


def stub_source(  # noqa: PLR0913
    name: str,
    rank: int,
    outcome: ResolutionResult | Exception | None = None,
    policy: AccessPolicy | None = None,
    is_fallback: bool = False,
    delay_seconds: float = 0.0,
) -> StubSource:
    return StubSource(
        descriptor=SourceDescriptor(
            name=name,
            priority_rank=rank,
            access_policy=policy or AccessPolicy(),
            is_fallback=is_fallback,
        ),
        outcome=outcome,
        delay_seconds=delay_seconds,
    )


@dataclass
class FailingCacheStore:
    """Cache store whose every operation fails."""

    def load_entries(self) -> dict[str, CacheEntry]:
        raise CachePersistenceError("storage offline")

    def save_entry(self, key: str, entry: CacheEntry) -> None:
        raise CachePersistenceError("storage offline")

    def delete_all(self) -> None:
        raise CachePersistenceError("storage offline")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def cache(cache_store: InMemoryCacheStore, clock: FakeClock) -> ResultCache:
    return ResultCache(store=cache_store, clock=clock)


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(clock=clock)


@pytest.fixture
def container(
    settings: Settings, cache: ResultCache, rate_limiter: RateLimiter
) -> AppContainer:
    resolver = FoodResolver(
        sources=[LocalFallbackSource()],
        cache=cache,
        rate_limiter=rate_limiter,
        warm_delay_seconds=0,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        resolver=resolver,
        close_resources=close_resources,
    )


@pytest.fixture(autouse=True)
def _reset_app_logger() -> None:
    """Undo configure_logging so caplog sees application records."""
    logger = logging.getLogger("food_resolver")
    logger.handlers.clear()
    logger.propagate = True
