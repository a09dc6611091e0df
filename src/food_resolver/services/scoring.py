"""Trust scoring and completeness checks for candidate records."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from food_resolver.domain.food import FoodRecord

OPEN_FOOD_FACTS = "OpenFoodFacts"
SPOONACULAR = "Spoonacular"
USDA_FDC = "USDA FoodData Central"
LOCAL_FALLBACK = "Local Database"

SOURCE_WEIGHTS: Mapping[str, float] = {
    USDA_FDC: 0.95,
    "Edamam Food Database": 0.90,
    SPOONACULAR: 0.88,
    OPEN_FOOD_FACTS: 0.85,
    "FatSecret Platform": 0.80,
    "Go-UPC API": 0.70,
    "Barcode Lookup API": 0.65,
    LOCAL_FALLBACK: 0.60,
}

DEFAULT_SOURCE_WEIGHT = 0.5

_NAME_BONUS = 0.05
_BRAND_BONUS = 0.05
_INGREDIENTS_BONUS = 0.10
_NUTRIENT_BONUS = 0.05
_SERVING_BONUS = 0.05


@dataclass(frozen=True)
class TrustScorer:
    """Scores a record from source reliability plus completeness bonuses."""

    weights: Mapping[str, float] = field(default_factory=lambda: dict(SOURCE_WEIGHTS))
    default_weight: float = DEFAULT_SOURCE_WEIGHT

    def score(self, record: FoodRecord, source_name: str) -> float:
        """Return a confidence value in [0, 1]."""
        score = self.weights.get(source_name, self.default_weight)
        if record.product_name.strip():
            score += _NAME_BONUS
        if record.brand.strip():
            score += _BRAND_BONUS
        if record.ingredients:
            score += _INGREDIENTS_BONUS
        nutrition = record.nutrition
        if nutrition is not None:
            for value in (nutrition.total_carbs_g, nutrition.fiber_g, nutrition.sugars_g):
                if value is not None:
                    score += _NUTRIENT_BONUS
        if record.serving_size_g:
            score += _SERVING_BONUS
        return round(min(max(score, 0.0), 1.0), 4)


def is_incomplete(record: FoodRecord) -> bool:
    """Return True if any field needed downstream is missing or empty."""
    return (
        not record.product_name.strip()
        or not record.brand.strip()
        or not record.ingredients
        or record.nutrition is None
        or not record.serving_size_g
    )
