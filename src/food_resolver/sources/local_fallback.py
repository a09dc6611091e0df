"""Offline fallback source backed by a built-in product table."""

import hashlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from food_resolver.domain.errors import NotFoundError
from food_resolver.domain.food import FoodRecord, NutritionFacts, ResolutionResult
from food_resolver.domain.sources import SourceDescriptor
from food_resolver.services.identifiers import NormalizedIdentifier
from food_resolver.services.scoring import LOCAL_FALLBACK

PLACEHOLDER_TRUST_SCORE = 0.3

LOCAL_PRODUCTS: Mapping[str, FoodRecord] = {
    "049000006346": FoodRecord(
        product_name="Coca-Cola Classic",
        brand="Coca-Cola",
        ingredients=(
            "Carbonated Water",
            "High Fructose Corn Syrup",
            "Caramel Color",
            "Phosphoric Acid",
            "Natural Flavors",
            "Caffeine",
        ),
        nutrition=NutritionFacts(
            total_carbs_g=39, fiber_g=0, sugars_g=39, protein_g=0, fat_g=0, calories=140
        ),
        serving_size_g=355,
    ),
    "038000138416": FoodRecord(
        product_name="Lays Classic Potato Chips",
        brand="Lays",
        ingredients=("Potatoes", "Vegetable Oil", "Salt"),
        nutrition=NutritionFacts(
            total_carbs_g=15, fiber_g=1, sugars_g=0, protein_g=2, fat_g=10, calories=160
        ),
        serving_size_g=28,
    ),
    "021130126026": FoodRecord(
        product_name="Honey Nut Cheerios",
        brand="General Mills",
        ingredients=(
            "Whole Grain Oats",
            "Sugar",
            "Oat Bran",
            "Corn Starch",
            "Honey",
            "Brown Sugar Syrup",
            "Salt",
        ),
        nutrition=NutritionFacts(
            total_carbs_g=22, fiber_g=3, sugars_g=9, protein_g=3, fat_g=2, calories=110
        ),
        serving_size_g=28,
    ),
    "123456789012": FoodRecord(
        product_name="Granola Bar",
        brand="Nature Valley",
        ingredients=(
            "Whole Grain Oats",
            "Sugar",
            "Canola Oil",
            "Rice Flour",
            "Honey",
            "Brown Sugar Syrup",
        ),
        nutrition=NutritionFacts(
            total_carbs_g=29, fiber_g=4, sugars_g=11, protein_g=4, fat_g=6, calories=190
        ),
        serving_size_g=42,
    ),
    "369168219021": FoodRecord(
        product_name="Chocolate Chip Cookie",
        brand="Sweet Treats",
        ingredients=(
            "Enriched Flour",
            "Sugar",
            "Chocolate Chips",
            "Butter",
            "Brown Sugar",
            "Eggs",
            "Vanilla Extract",
            "Baking Soda",
            "Salt",
        ),
        nutrition=NutritionFacts(
            total_carbs_g=24, fiber_g=1, sugars_g=14, protein_g=2, fat_g=8, calories=180
        ),
        serving_size_g=30,
    ),
}

_PLACEHOLDER_NAMES = ("Mystery Snack", "Unknown Beverage", "Test Food Item", "Sample Product")
_PLACEHOLDER_BRANDS = ("Generic", "Test Brand", "Demo Co.", "Sample Inc.")
_PLACEHOLDER_SUGARS = (5, 12, 18, 25, 32)

_logger = logging.getLogger(__name__)


def local_fallback_descriptor() -> SourceDescriptor:
    """Describe the offline fallback: last in line, unlimited, always answers."""
    return SourceDescriptor(name=LOCAL_FALLBACK, priority_rank=99, is_fallback=True)


@dataclass
class LocalFallbackSource:
    """Answers from a local table without touching the network.

    Unknown identifiers get a placeholder record derived from the identifier
    itself, so repeated lookups return the same data. Placeholders carry a
    low trust score and are flagged incomplete.
    """

    descriptor: SourceDescriptor = field(default_factory=local_fallback_descriptor)
    products: Mapping[str, FoodRecord] = field(default_factory=lambda: dict(LOCAL_PRODUCTS))
    synthesize_unknown: bool = True

    async def resolve(self, identifier: NormalizedIdentifier) -> ResolutionResult:
        """Look up an identifier in the local table."""
        record = self._find(identifier)
        if record is not None:
            _logger.info("Local product found: %s", record.product_name)
            return ResolutionResult.ok(record, source_name=self.descriptor.name)
        if not self.synthesize_unknown:
            error = NotFoundError(self.descriptor.name, "Product not found")
            return ResolutionResult.failure(str(error), source_name=self.descriptor.name)
        placeholder = placeholder_record(identifier.value)
        _logger.info(
            "Local placeholder generated: identifier=%s name=%s",
            identifier.value,
            placeholder.product_name,
        )
        return ResolutionResult.ok(
            placeholder,
            source_name=self.descriptor.name,
            trust_score=PLACEHOLDER_TRUST_SCORE,
            incomplete=True,
        )

    def _find(self, identifier: NormalizedIdentifier) -> FoodRecord | None:
        if identifier.is_barcode:
            return self.products.get(identifier.value)
        wanted = identifier.value.casefold()
        for record in self.products.values():
            if record.product_name.casefold() == wanted:
                return record
        for record in self.products.values():
            if wanted in record.product_name.casefold():
                return record
        return None


def placeholder_record(identifier: str) -> FoodRecord:
    """Build a deterministic stand-in record for an unknown identifier."""
    seed = int.from_bytes(hashlib.sha256(identifier.encode()).digest()[:8], "big")
    sugars = _PLACEHOLDER_SUGARS[seed % len(_PLACEHOLDER_SUGARS)]
    return FoodRecord(
        product_name=_PLACEHOLDER_NAMES[(seed >> 8) % len(_PLACEHOLDER_NAMES)],
        brand=_PLACEHOLDER_BRANDS[(seed >> 16) % len(_PLACEHOLDER_BRANDS)],
        ingredients=("Various ingredients", "Sugar", "Artificial flavors"),
        nutrition=NutritionFacts(
            total_carbs_g=sugars + 10,
            fiber_g=2,
            sugars_g=sugars,
            protein_g=3,
            fat_g=5,
            calories=150,
        ),
        serving_size_g=100,
    )
