"""Spoonacular source, a commercial grocery products API."""

from dataclasses import dataclass

from pydantic import Field

from food_resolver.adapters.spoonacular_client import SpoonacularClient
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
from food_resolver.services.scoring import SPOONACULAR
from food_resolver.sources.base import (
    SourcePayload,
    call_provider,
    parse_payload,
    resolve_with,
)

_GRAM_UNITS = {"g", "gram", "grams", "ml", "milliliter", "milliliters"}


class SpoonacularNutrient(SourcePayload):
    name: str
    amount: float | None = None
    unit: str | None = None


class SpoonacularNutrition(SourcePayload):
    nutrients: list[SpoonacularNutrient] = Field(default_factory=list)


class SpoonacularIngredient(SourcePayload):
    name: str | None = None


class SpoonacularServings(SourcePayload):
    number: float | None = None
    size: float | None = None
    unit: str | None = None


class SpoonacularProduct(SourcePayload):
    id: int | None = None
    title: str | None = None
    brand: str | None = None
    ingredients: list[SpoonacularIngredient] = Field(default_factory=list)
    ingredient_list: str | None = Field(default=None, alias="ingredientList")
    nutrition: SpoonacularNutrition = Field(default_factory=SpoonacularNutrition)
    servings: SpoonacularServings | None = None


class SpoonacularSearchHit(SourcePayload):
    id: int
    title: str | None = None


class SpoonacularSearchResponse(SourcePayload):
    products: list[SpoonacularSearchHit] = Field(default_factory=list)


def spoonacular_descriptor(calls_per_hour: int = 150) -> SourceDescriptor:
    """Describe Spoonacular: API key required, hourly quota."""
    return SourceDescriptor(
        name=SPOONACULAR,
        priority_rank=2,
        access_policy=AccessPolicy(rate_limit=RateLimitPolicy.per_hour(calls_per_hour)),
    )


@dataclass
class SpoonacularSource:
    """Resolves barcodes by UPC and names by search followed by a product read."""

    client: SpoonacularClient
    descriptor: SourceDescriptor

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        """Resolve an identifier against Spoonacular."""
        return await resolve_with(self.descriptor, lambda: self._lookup(identifier))

    async def _lookup(self, identifier: NormalizedIdentifier) -> tuple[FoodRecord, bool]:
        name = self.descriptor.name
        if identifier.is_barcode:
            payload = await call_provider(
                name, lambda: self.client.get_product_by_upc(identifier.value)
            )
        else:
            search_payload = await call_provider(
                name, lambda: self.client.search_products(identifier.value)
            )
            search = parse_payload(name, SpoonacularSearchResponse, search_payload)
            if not search.products:
                raise NotFoundError(name, f"No products match '{identifier.value}'")
            product_id = search.products[0].id
            payload = await call_provider(
                name, lambda: self.client.get_product(product_id)
            )
        product = parse_payload(name, SpoonacularProduct, payload)
        if not product.title:
            raise ProviderDataError(name, "Invalid response: product has no title")
        return _to_record(product), False


def _to_record(product: SpoonacularProduct) -> FoodRecord:
    ingredients = [item.name.strip() for item in product.ingredients if item.name]
    if not ingredients:
        ingredients = parse_ingredients(product.ingredient_list)
    nutrients = product.nutrition.nutrients
    return FoodRecord(
        product_name=(product.title or "").strip(),
        brand=(product.brand or "").strip(),
        ingredients=tuple(ingredients),
        nutrition=NutritionFacts(
            total_carbs_g=_nutrient(nutrients, "carbohydrates") or 0.0,
            fiber_g=_nutrient(nutrients, "fiber") or 0.0,
            sugars_g=_nutrient(nutrients, "sugar") or 0.0,
            protein_g=_nutrient(nutrients, "protein"),
            fat_g=_nutrient(nutrients, "fat"),
            calories=_nutrient(nutrients, "calories"),
        ),
        serving_size_g=_serving_size_g(product.servings),
    )


def _nutrient(nutrients: list[SpoonacularNutrient], name: str) -> float | None:
    """Find a nutrient amount, preferring an exact name over a partial match."""
    wanted = name.lower()
    exact = [n for n in nutrients if n.name.lower() == wanted]
    partial = [n for n in nutrients if wanted in n.name.lower()]
    for nutrient in exact or partial:
        if nutrient.amount is not None:
            return nutrient.amount
    return None


def _serving_size_g(servings: SpoonacularServings | None) -> float:
    if servings and servings.size and servings.size > 0:
        if (servings.unit or "").strip().lower() in _GRAM_UNITS:
            return servings.size
    return DEFAULT_SERVING_SIZE_G
