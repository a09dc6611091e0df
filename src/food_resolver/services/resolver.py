"""Resolution orchestrator: validation, cache, prioritized providers."""

import asyncio
import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from food_resolver.domain.errors import (
    ExhaustionError,
    IdentifierValidationError,
    ProviderDataError,
    RateLimitExceeded,
)
from food_resolver.domain.food import CacheStats, FoodRecord, ResolutionResult
from food_resolver.domain.sources import RateLimitPolicy, SourceDescriptor
from food_resolver.services.cache import ResultCache
from food_resolver.services.identifiers import NormalizedIdentifier, validate_identifier
from food_resolver.services.rate_limiter import RateLimiter
from food_resolver.services.scoring import TrustScorer, is_incomplete
from food_resolver.sources.base import FoodSource

DEFAULT_QUALITY_THRESHOLD = 0.8
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 10.0

EXHAUSTED_MESSAGE = (
    "Unable to resolve food data from any source. Please try manual entry."
)
TIMED_OUT_MESSAGE = (
    "Food lookup timed out before any source answered. "
    "Please try again or enter the item manually."
)
ATTRIBUTION_TEXT = (
    "Food data provided by Open Food Facts (ODbL license). "
    "This app shares data improvements back to the community."
)

_logger = logging.getLogger(__name__)


@dataclass
class FoodResolver:
    """Resolves identifiers to food records through an ordered provider chain.

    Providers are tried one at a time in ascending priority rank. The first
    result that clears the quality gate is cached and returned. A result from
    the fallback provider is accepted even below the gate so that every
    request ends with an answer when the fallback is configured.
    """

    sources: list[FoodSource]
    cache: ResultCache
    rate_limiter: RateLimiter
    scorer: TrustScorer = field(default_factory=TrustScorer)
    quality_threshold: float = DEFAULT_QUALITY_THRESHOLD
    provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS
    warm_delay_seconds: float = 0.1
    attribution_text: str = ATTRIBUTION_TEXT

    def __post_init__(self) -> None:
        self.sources = sorted(
            self.sources, key=lambda source: source.descriptor.priority_rank
        )

    async def resolve(
        self, raw_identifier: str, deadline_seconds: float | None = None
    ) -> ResolutionResult:
        """Resolve a barcode or food name; never raises for lookup failures."""
        try:
            identifier = validate_identifier(raw_identifier)
        except IdentifierValidationError as exc:
            _logger.info("Rejected identifier %r: %s", raw_identifier, exc.reason)
            return ResolutionResult.failure(exc.reason)

        cached = self.cache.get(identifier.cache_key)
        if cached is not None:
            _logger.info("Cache hit: key=%s", identifier.cache_key)
            return cached.result

        try:
            async with asyncio.timeout(deadline_seconds):
                result = await self._resolve_from_sources(identifier)
        except TimeoutError:
            _logger.warning(
                "Resolution deadline exceeded: identifier=%s deadline=%ss",
                identifier.value,
                deadline_seconds,
            )
            return ResolutionResult.failure(TIMED_OUT_MESSAGE)
        except ExhaustionError as exc:
            _logger.info("All sources failed: identifier=%s", identifier.value)
            return ResolutionResult.failure(str(exc))

        self.cache.put(identifier.cache_key, result)
        return result

    async def _resolve_from_sources(
        self, identifier: NormalizedIdentifier
    ) -> ResolutionResult:
        for source in self.sources:
            descriptor = source.descriptor
            key, quota = _quota(descriptor, identifier)
            try:
                self.rate_limiter.acquire(key, quota)
            except RateLimitExceeded as exc:
                _logger.info("Skipping %s: %s", descriptor.name, exc)
                continue

            _logger.info("Trying %s for %s", descriptor.name, identifier.value)
            result = await self._attempt(source, identifier)
            record = result.record
            if not result.success or record is None:
                _logger.info("%s failed: %s", descriptor.name, result.error_message)
                continue

            result = self._complete(descriptor, result, record)
            if self._passes_quality_gate(result):
                _logger.info(
                    "Resolved with %s (trust: %s)", descriptor.name, result.trust_score
                )
                return result
            if descriptor.is_fallback:
                _logger.info(
                    "Accepting %s result as last resort (trust: %s, incomplete: %s)",
                    descriptor.name,
                    result.trust_score,
                    result.incomplete,
                )
                return result
            _logger.info(
                "%s result below threshold (trust: %s, incomplete: %s)",
                descriptor.name,
                result.trust_score,
                result.incomplete,
            )
        raise ExhaustionError(EXHAUSTED_MESSAGE)

    async def _attempt(
        self, source: FoodSource, identifier: NormalizedIdentifier
    ) -> ResolutionResult:
        """Call one source, converting timeouts and exceptions into failures."""
        name = source.descriptor.name
        try:
            async with asyncio.timeout(self.provider_timeout_seconds):
                result = await source.resolve(identifier)
        except TimeoutError:
            return ResolutionResult.failure(
                f"{name}: timed out after {self.provider_timeout_seconds}s",
                source_name=name,
            )
        except Exception as exc:
            _logger.exception("%s raised during lookup", name)
            return ResolutionResult.failure(f"{name}: {exc}", source_name=name)
        if result.success and (result.record is None or not result.record.is_resolvable()):
            error = ProviderDataError(
                name, "Record is missing a name, nutrition or serving size"
            )
            return ResolutionResult.failure(str(error), source_name=name)
        return result

    def _complete(
        self,
        descriptor: SourceDescriptor,
        result: ResolutionResult,
        record: FoodRecord,
    ) -> ResolutionResult:
        """Fill in score, completeness, source and attribution from the chain."""
        trust_score = result.trust_score
        if trust_score is None:
            trust_score = self.scorer.score(record, descriptor.name)
        policy = descriptor.access_policy
        attribution = result.attribution_text
        if attribution is None and policy.attribution_required:
            attribution = policy.attribution_text
        return dataclasses.replace(
            result,
            source_name=result.source_name or descriptor.name,
            trust_score=trust_score,
            incomplete=result.incomplete or is_incomplete(record),
            attribution_text=attribution,
        )

    def _passes_quality_gate(self, result: ResolutionResult) -> bool:
        return (
            result.record is not None
            and result.trust_score is not None
            and result.trust_score >= self.quality_threshold
            and not result.incomplete
            and len(result.record.ingredients) > 0
        )

    async def clear_cache(self) -> None:
        """Drop every cached result."""
        await self.cache.clear()

    def cache_stats(self) -> CacheStats:
        """Return cache size and keys."""
        return self.cache.stats()

    def rate_limit_snapshot(self) -> dict[str, dict[str, int]]:
        """Return current rate limit windows."""
        return self.rate_limiter.snapshot()

    def get_attribution_text(self) -> str:
        """Return the attribution notice required by licensed sources."""
        return self.attribution_text

    async def warm_cache(self, identifiers: Iterable[str]) -> None:
        """Resolve identifiers one by one to pre-populate the cache."""
        pending = list(identifiers)
        _logger.info("Warming cache for %s products", len(pending))
        for index, identifier in enumerate(pending):
            try:
                result = await self.resolve(identifier)
            except Exception:
                _logger.exception("Failed to warm cache for %s", identifier)
            else:
                if not result.success:
                    _logger.warning(
                        "Cache warm miss: identifier=%s error=%s",
                        identifier,
                        result.error_message,
                    )
            if index < len(pending) - 1:
                await asyncio.sleep(self.warm_delay_seconds)


def _quota(
    descriptor: SourceDescriptor, identifier: NormalizedIdentifier
) -> tuple[str, RateLimitPolicy | None]:
    """Pick the rate limit window a lookup is charged against.

    Name lookups go to the separate search window when the source declares
    one; everything else uses the source's main window.
    """
    policy = descriptor.access_policy
    if not identifier.is_barcode and policy.search_rate_limit is not None:
        return f"{descriptor.name}:search", policy.search_rate_limit
    return descriptor.name, policy.rate_limit
