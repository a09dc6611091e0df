"""USDA FoodData Central source."""

import logging
from dataclasses import dataclass

from pydantic import Field

from food_resolver.adapters.fdc_client import FdcClient
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
from food_resolver.services.scoring import USDA_FDC
from food_resolver.sources.base import (
    SourcePayload,
    call_provider,
    parse_payload,
    resolve_with,
    scale_to_serving,
)

ATTRIBUTION = "Data from USDA FoodData Central (CC0)"

_NUTRIENT_IDS = {
    "carbs": 1005,
    "fiber": 1079,
    "sugars": 2000,
    "protein": 1003,
    "fat": 1004,
    "calories": 1008,
}
_GRAM_UNITS = {"g", "grm", "ml", "mlt"}

_logger = logging.getLogger(__name__)


class FdcNutrientRef(SourcePayload):
    id: int | None = None


class FdcFoodNutrient(SourcePayload):
    nutrient_id: int | None = Field(default=None, alias="nutrientId")
    nutrient: FdcNutrientRef | None = None
    value: float | None = None
    amount: float | None = None

    @property
    def resolved_id(self) -> int | None:
        if self.nutrient is not None and self.nutrient.id is not None:
            return self.nutrient.id
        return self.nutrient_id

    @property
    def resolved_amount(self) -> float | None:
        return self.value if self.value is not None else self.amount


class FdcFood(SourcePayload):
    fdc_id: int = Field(alias="fdcId")
    description: str | None = None
    brand_owner: str | None = Field(default=None, alias="brandOwner")
    brand_name: str | None = Field(default=None, alias="brandName")
    gtin_upc: str | None = Field(default=None, alias="gtinUpc")
    ingredients: str | None = None
    serving_size: float | None = Field(default=None, alias="servingSize")
    serving_size_unit: str | None = Field(default=None, alias="servingSizeUnit")
    food_nutrients: list[FdcFoodNutrient] = Field(
        default_factory=list, alias="foodNutrients"
    )


class FdcSearchResponse(SourcePayload):
    foods: list[FdcFood] = Field(default_factory=list)


def usda_descriptor(calls_per_hour: int = 1000) -> SourceDescriptor:
    """Describe FoodData Central: public domain data, hourly key quota."""
    return SourceDescriptor(
        name=USDA_FDC,
        priority_rank=3,
        access_policy=AccessPolicy(
            license_name="CC0",
            attribution_required=True,
            attribution_text=ATTRIBUTION,
            rate_limit=RateLimitPolicy.per_hour(calls_per_hour),
        ),
    )


@dataclass
class UsdaFoodDataSource:
    """Resolves identifiers through the FDC branded foods search."""

    fdc_client: FdcClient
    descriptor: SourceDescriptor
    page_size: int = 5

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        """Resolve an identifier against FoodData Central."""
        return await resolve_with(self.descriptor, lambda: self._lookup(identifier))

    async def _lookup(self, identifier: NormalizedIdentifier) -> tuple[FoodRecord, bool]:
        name = self.descriptor.name
        payload = await call_provider(
            name,
            lambda: self.fdc_client.search_foods(
                identifier.value, page_size=self.page_size
            ),
        )
        search = parse_payload(name, FdcSearchResponse, payload)
        food = _pick_food(search.foods, identifier)
        if food is None:
            raise NotFoundError(name, f"No branded food matches '{identifier.value}'")
        if not food.food_nutrients:
            detail_payload = await call_provider(
                name, lambda: self.fdc_client.get_food(food.fdc_id)
            )
            food = parse_payload(name, FdcFood, detail_payload)
        if not food.description:
            raise ProviderDataError(name, f"Food {food.fdc_id} has no description")
        _logger.info("Nutrition food FDC: fdc_id=%s", food.fdc_id)
        return _to_record(food), False


def _pick_food(foods: list[FdcFood], identifier: NormalizedIdentifier) -> FdcFood | None:
    if not identifier.is_barcode:
        return foods[0] if foods else None
    wanted = identifier.value.lstrip("0")
    for food in foods:
        if food.gtin_upc and food.gtin_upc.lstrip("0") == wanted:
            return food
    return None


def _to_record(food: FdcFood) -> FoodRecord:
    serving_size_g = DEFAULT_SERVING_SIZE_G
    unit = (food.serving_size_unit or "").strip().lower()
    if food.serving_size and food.serving_size > 0 and unit in _GRAM_UNITS:
        serving_size_g = food.serving_size
    values = _extract_nutrients(food.food_nutrients)
    return FoodRecord(
        product_name=(food.description or "").strip(),
        brand=(food.brand_name or food.brand_owner or "").strip(),
        ingredients=tuple(parse_ingredients(food.ingredients)),
        nutrition=NutritionFacts(
            total_carbs_g=scale_to_serving(values.get("carbs", 0.0), serving_size_g),
            fiber_g=scale_to_serving(values.get("fiber", 0.0), serving_size_g),
            sugars_g=scale_to_serving(values.get("sugars", 0.0), serving_size_g),
            protein_g=scale_to_serving(values.get("protein"), serving_size_g),
            fat_g=scale_to_serving(values.get("fat"), serving_size_g),
            calories=scale_to_serving(values.get("calories"), serving_size_g),
        ),
        serving_size_g=serving_size_g,
    )


def _extract_nutrients(food_nutrients: list[FdcFoodNutrient]) -> dict[str, float]:
    """Extract per-100g nutrient amounts keyed by short name."""
    by_id = {nutrient_id: key for key, nutrient_id in _NUTRIENT_IDS.items()}
    values: dict[str, float] = {}
    for nutrient in food_nutrients:
        key = by_id.get(nutrient.resolved_id)
        amount = nutrient.resolved_amount
        if key is not None and amount is not None:
            values[key] = float(amount)
    return values
