"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_resolver.adapters.fdc_client import HttpxFdcClient
from food_resolver.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from food_resolver.adapters.spoonacular_client import HttpxSpoonacularClient
from food_resolver.adapters.supabase_cache_repository import SupabaseCacheRepository
from food_resolver.config import Settings
from food_resolver.services.cache import ResultCache, validity_ms_from_days
from food_resolver.services.clock import Clock, SystemClock
from food_resolver.services.rate_limiter import RateLimiter
from food_resolver.services.resolver import FoodResolver
from food_resolver.sources.base import FoodSource
from food_resolver.sources.local_fallback import LocalFallbackSource
from food_resolver.sources.open_food_facts import (
    OpenFoodFactsSource,
    open_food_facts_descriptor,
)
from food_resolver.sources.spoonacular import SpoonacularSource, spoonacular_descriptor
from food_resolver.sources.usda import UsdaFoodDataSource, usda_descriptor

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolver: FoodResolver
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None, clock: Clock | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_clock = clock or SystemClock()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    cache = ResultCache(
        store=SupabaseCacheRepository(
            supabase_client, table_name=resolved_settings.cache_table
        ),
        clock=resolved_clock,
        validity_ms=validity_ms_from_days(resolved_settings.cache_validity_days),
    )
    rate_limiter = RateLimiter(clock=resolved_clock)
    timeout = resolved_settings.provider_timeout_seconds

    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.user_agent,
        timeout_seconds=timeout,
    )
    sources: list[FoodSource] = [
        OpenFoodFactsSource(
            client=off_client,
            descriptor=open_food_facts_descriptor(
                resolved_settings.user_agent,
                resolved_settings.off_product_reads_per_minute,
                resolved_settings.off_searches_per_minute,
            ),
        )
    ]
    closers: list[Callable[[], Awaitable[None]]] = [off_client.close]

    if resolved_settings.spoonacular_api_key:
        spoonacular_client = HttpxSpoonacularClient.create(
            api_key=resolved_settings.spoonacular_api_key,
            base_url=resolved_settings.spoonacular_base_url,
            timeout_seconds=timeout,
        )
        sources.append(
            SpoonacularSource(
                client=spoonacular_client,
                descriptor=spoonacular_descriptor(
                    resolved_settings.spoonacular_calls_per_hour
                ),
            )
        )
        closers.append(spoonacular_client.close)
    else:
        _logger.info("Spoonacular disabled: no API key configured")

    if resolved_settings.fdc_api_key:
        fdc_client = HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
            timeout_seconds=timeout,
        )
        sources.append(
            UsdaFoodDataSource(
                fdc_client=fdc_client,
                descriptor=usda_descriptor(resolved_settings.fdc_calls_per_hour),
            )
        )
        closers.append(fdc_client.close)
    else:
        _logger.info("USDA FoodData Central disabled: no API key configured")

    sources.append(
        LocalFallbackSource(
            synthesize_unknown=resolved_settings.synthesize_unknown_items
        )
    )

    resolver = FoodResolver(
        sources=sources,
        cache=cache,
        rate_limiter=rate_limiter,
        quality_threshold=resolved_settings.quality_threshold,
        provider_timeout_seconds=timeout,
        warm_delay_seconds=resolved_settings.warm_cache_delay_seconds,
    )

    async def close_resources() -> None:
        await cache.flush()
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        resolver=resolver,
        close_resources=close_resources,
    )
