"""Open Food Facts source, the primary open nutrition database."""

import logging
import re
from dataclasses import dataclass

from pydantic import Field

from food_resolver.adapters.open_food_facts_client import OpenFoodFactsClient
from food_resolver.domain.errors import NotFoundError, ProviderDataError
from food_resolver.domain.food import (
    DEFAULT_SERVING_SIZE_G,
    FoodRecord,
    NutritionFacts,
    ResolutionResult,
)
from food_resolver.domain.sources import AccessPolicy, RateLimitPolicy, SourceDescriptor
from food_resolver.services.identifiers import NormalizedIdentifier
from food_resolver.services.ingredients import parse_ingredients
from food_resolver.services.scoring import OPEN_FOOD_FACTS
from food_resolver.sources.base import (
    SourcePayload,
    call_provider,
    parse_payload,
    resolve_with,
    scale_to_serving,
)

ATTRIBUTION = "Data from Open Food Facts (ODbL license)"

_SERVING = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*(g|gr|grams?|ml)\b", re.IGNORECASE)

_logger = logging.getLogger(__name__)


class OffNutriments(SourcePayload):
    carbohydrates_100g: float | None = None
    carbohydrates: float | None = None
    fiber_100g: float | None = None
    fiber: float | None = None
    sugars_100g: float | None = None
    sugars: float | None = None
    proteins_100g: float | None = None
    proteins: float | None = None
    fat_100g: float | None = None
    fat: float | None = None
    energy_kcal_100g: float | None = Field(default=None, alias="energy-kcal_100g")
    energy_kcal: float | None = Field(default=None, alias="energy-kcal")


class OffProduct(SourcePayload):
    product_name: str | None = None
    product_name_en: str | None = None
    brands: str | None = None
    ingredients_text: str | None = None
    ingredients_text_en: str | None = None
    nutriments: OffNutriments = Field(default_factory=OffNutriments)
    serving_size: str | None = None
    serving_quantity: float | None = None


class OffProductResponse(SourcePayload):
    status: int | None = None
    product: OffProduct | None = None


class OffSearchResponse(SourcePayload):
    products: list[OffProduct] = Field(default_factory=list)


def open_food_facts_descriptor(
    user_agent: str,
    product_reads_per_minute: int = 100,
    searches_per_minute: int = 10,
) -> SourceDescriptor:
    """Describe Open Food Facts: ODbL data, attribution and User-Agent required.

    Product reads and name searches have separate quotas.
    """
    return SourceDescriptor(
        name=OPEN_FOOD_FACTS,
        priority_rank=1,
        access_policy=AccessPolicy(
            license_name="ODbL",
            attribution_required=True,
            attribution_text=ATTRIBUTION,
            rate_limit=RateLimitPolicy.per_minute(product_reads_per_minute),
            search_rate_limit=RateLimitPolicy.per_minute(searches_per_minute),
            user_agent=user_agent,
        ),
    )


@dataclass
class OpenFoodFactsSource:
    """Resolves barcodes through product reads and names through search."""

    client: OpenFoodFactsClient
    descriptor: SourceDescriptor

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        """Resolve an identifier against Open Food Facts."""
        return await resolve_with(self.descriptor, lambda: self._lookup(identifier))

    async def _lookup(self, identifier: NormalizedIdentifier) -> tuple[FoodRecord, bool]:
        name = self.descriptor.name
        if identifier.is_barcode:
            payload = await call_provider(
                name, lambda: self.client.get_product(identifier.value)
            )
            response = parse_payload(name, OffProductResponse, payload)
            if response.status == 0 or response.product is None:
                raise NotFoundError(name, "Product not found")
            product = response.product
        else:
            payload = await call_provider(
                name, lambda: self.client.search_products(identifier.value)
            )
            response = parse_payload(name, OffSearchResponse, payload)
            if not response.products:
                raise NotFoundError(name, f"No products match '{identifier.value}'")
            product = response.products[0]
        return _to_record(name, product)


def _to_record(source_name: str, product: OffProduct) -> tuple[FoodRecord, bool]:
    product_name = product.product_name or product.product_name_en
    if not product_name:
        raise ProviderDataError(source_name, "Product has no name")
    ingredients_text = product.ingredients_text or product.ingredients_text_en or ""
    if not ingredients_text:
        _logger.info("Open Food Facts product without ingredients: %s", product_name)
    serving_size_g = _serving_size_g(product)
    nutriments = product.nutriments
    nutrition = NutritionFacts(
        total_carbs_g=scale_to_serving(
            _first(nutriments.carbohydrates_100g, nutriments.carbohydrates, 0.0),
            serving_size_g,
        ),
        fiber_g=scale_to_serving(
            _first(nutriments.fiber_100g, nutriments.fiber, 0.0), serving_size_g
        ),
        sugars_g=scale_to_serving(
            _first(nutriments.sugars_100g, nutriments.sugars, 0.0), serving_size_g
        ),
        protein_g=scale_to_serving(
            _first(nutriments.proteins_100g, nutriments.proteins), serving_size_g
        ),
        fat_g=scale_to_serving(_first(nutriments.fat_100g, nutriments.fat), serving_size_g),
        calories=scale_to_serving(
            _first(nutriments.energy_kcal_100g, nutriments.energy_kcal), serving_size_g
        ),
    )
    record = FoodRecord(
        product_name=product_name.strip(),
        brand=(product.brands or "").split(",")[0].strip(),
        ingredients=tuple(parse_ingredients(ingredients_text)),
        nutrition=nutrition,
        serving_size_g=serving_size_g,
    )
    return record, not ingredients_text


def _serving_size_g(product: OffProduct) -> float:
    if product.serving_quantity and product.serving_quantity > 0:
        return float(product.serving_quantity)
    if product.serving_size:
        match = _SERVING.match(product.serving_size)
        if match:
            value = float(match.group(1).replace(",", "."))
            if value > 0:
                return value
    return DEFAULT_SERVING_SIZE_G


def _first(*values: float | None) -> float | None:
    for value in values:
        if value is not None:
            return value
    return None
