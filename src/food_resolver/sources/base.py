"""Common interface and helpers for provider sources."""

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

import httpx
import pydantic

from food_resolver.domain.errors import (
    NotFoundError,
    ProviderDataError,
    ProviderError,
    ProviderTransportError,
    QuotaExceededError,
)
from food_resolver.domain.food import FoodRecord, ResolutionResult
from food_resolver.domain.sources import SourceDescriptor
from food_resolver.services.identifiers import NormalizedIdentifier

_logger = logging.getLogger(__name__)

_HTTP_NOT_FOUND = 404
_HTTP_PAYMENT_REQUIRED = 402
_HTTP_TOO_MANY_REQUESTS = 429

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


class FoodSource(Protocol):
    """A provider that can turn an identifier into a food record."""

    descriptor: SourceDescriptor

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        """Resolve an identifier; failures are returned, not raised."""


class SourcePayload(pydantic.BaseModel):
    """Base for raw provider payload models."""

    model_config = pydantic.ConfigDict(extra="ignore", populate_by_name=True)

    @pydantic.field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


async def call_provider(
    source_name: str, func: Callable[[], Awaitable[dict[str, object]]]
) -> dict[str, object]:
    """Run a client call and translate failures into provider errors."""
    try:
        payload = await func()
    except httpx.HTTPStatusError as exc:
        raise _status_error(source_name, exc.response.status_code) from exc
    except httpx.HTTPError as exc:
        raise ProviderTransportError(
            source_name, f"{type(exc).__name__}: {exc}"
        ) from exc
    except ValueError as exc:
        raise ProviderDataError(source_name, "Response is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ProviderDataError(source_name, "Response is not a JSON object")
    return payload


def parse_payload(
    source_name: str, model: type[ModelT], payload: dict[str, object]
) -> ModelT:
    """Validate a raw payload into its typed model."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ProviderDataError(
            source_name, f"Unexpected response shape ({exc.error_count()} errors)"
        ) from exc


async def resolve_with(
    descriptor: SourceDescriptor,
    lookup: Callable[[], Awaitable[tuple[FoodRecord, bool]]],
) -> ResolutionResult:
    """Run a source lookup and wrap its outcome in a ResolutionResult.

    ``lookup`` returns the mapped record and whether the source itself
    considers it incomplete.
    """
    try:
        record, incomplete = await lookup()
    except ProviderError as exc:
        _logger.info("Source lookup failed: source=%s error=%s", descriptor.name, exc)
        return ResolutionResult.failure(str(exc), source_name=descriptor.name)
    policy = descriptor.access_policy
    return ResolutionResult.ok(
        record,
        source_name=descriptor.name,
        incomplete=incomplete,
        attribution_text=policy.attribution_text
        if policy.attribution_required
        else None,
    )


def scale_to_serving(value: float | None, serving_size_g: float) -> float | None:
    """Scale a per-100g amount to the serving size."""
    if value is None:
        return None
    return round(value * serving_size_g / 100.0, 3)


def _status_error(source_name: str, status_code: int) -> ProviderError:
    if status_code == _HTTP_NOT_FOUND:
        return NotFoundError(source_name, "Product not found")
    if status_code in {_HTTP_PAYMENT_REQUIRED, _HTTP_TOO_MANY_REQUESTS}:
        return QuotaExceededError(source_name, f"API quota exceeded (HTTP {status_code})")
    return ProviderTransportError(source_name, f"HTTP {status_code}")
