"""Food record and resolution result models."""

from dataclasses import asdict, dataclass, field

DEFAULT_SERVING_SIZE_G = 100.0


@dataclass(frozen=True)
class NutritionFacts:
    """Nutrition block of a food record, in grams per serving basis."""

    total_carbs_g: float
    fiber_g: float
    sugars_g: float
    protein_g: float | None = None
    fat_g: float | None = None
    calories: float | None = None


@dataclass(frozen=True)
class FoodRecord:
    """Canonical representation of a resolvable food item."""

    product_name: str
    brand: str = ""
    ingredients: tuple[str, ...] = ()
    nutrition: NutritionFacts | None = None
    serving_size_g: float = DEFAULT_SERVING_SIZE_G
    glycemic_index: float | None = None

    def is_resolvable(self) -> bool:
        """Return True if the record can be handed out as a successful result."""
        return (
            bool(self.product_name.strip())
            and self.nutrition is not None
            and self.serving_size_g > 0
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize the record to plain JSON-compatible data."""
        payload = asdict(self)
        payload["ingredients"] = list(self.ingredients)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "FoodRecord":
        """Build a record from data produced by ``to_dict``."""
        nutrition_payload = payload.get("nutrition")
        nutrition = None
        if isinstance(nutrition_payload, dict):
            nutrition = NutritionFacts(
                total_carbs_g=float(nutrition_payload.get("total_carbs_g", 0.0)),
                fiber_g=float(nutrition_payload.get("fiber_g", 0.0)),
                sugars_g=float(nutrition_payload.get("sugars_g", 0.0)),
                protein_g=_optional_float(nutrition_payload.get("protein_g")),
                fat_g=_optional_float(nutrition_payload.get("fat_g")),
                calories=_optional_float(nutrition_payload.get("calories")),
            )
        ingredients = payload.get("ingredients") or []
        return cls(
            product_name=str(payload.get("product_name", "")),
            brand=str(payload.get("brand") or ""),
            ingredients=tuple(str(item) for item in ingredients),
            nutrition=nutrition,
            serving_size_g=float(
                payload.get("serving_size_g") or DEFAULT_SERVING_SIZE_G
            ),
            glycemic_index=_optional_float(payload.get("glycemic_index")),
        )


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one resolution attempt.

    Exactly one of ``record`` and ``error_message`` is set. Use ``ok`` and
    ``failure`` to build instances.
    """

    success: bool
    record: FoodRecord | None = None
    source_name: str | None = None
    trust_score: float | None = None
    incomplete: bool = False
    error_message: str | None = None
    attribution_text: str | None = None

    def __post_init__(self) -> None:
        if self.success and (self.record is None or self.error_message is not None):
            raise ValueError("Successful results carry a record and no error")
        if not self.success and (self.record is not None or not self.error_message):
            raise ValueError("Failed results carry an error message and no record")
        if self.trust_score is not None and not 0.0 <= self.trust_score <= 1.0:
            raise ValueError("Trust score must be within [0, 1]")

    @classmethod
    def ok(  # noqa: PLR0913
        cls,
        record: FoodRecord,
        source_name: str,
        trust_score: float | None = None,
        incomplete: bool = False,
        attribution_text: str | None = None,
    ) -> "ResolutionResult":
        """Build a successful result."""
        return cls(
            success=True,
            record=record,
            source_name=source_name,
            trust_score=trust_score,
            incomplete=incomplete,
            attribution_text=attribution_text,
        )

    @classmethod
    def failure(
        cls, error_message: str, source_name: str | None = None
    ) -> "ResolutionResult":
        """Build a failed result."""
        return cls(success=False, source_name=source_name, error_message=error_message)

    def to_dict(self) -> dict[str, object]:
        """Serialize the result to plain JSON-compatible data."""
        return {
            "success": self.success,
            "record": self.record.to_dict() if self.record else None,
            "source_name": self.source_name,
            "trust_score": self.trust_score,
            "incomplete": self.incomplete,
            "error_message": self.error_message,
            "attribution_text": self.attribution_text,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "ResolutionResult":
        """Build a result from data produced by ``to_dict``."""
        record_payload = payload.get("record")
        record = (
            FoodRecord.from_dict(record_payload)
            if isinstance(record_payload, dict)
            else None
        )
        return cls(
            success=bool(payload.get("success")),
            record=record,
            source_name=_optional_str(payload.get("source_name")),
            trust_score=_optional_float(payload.get("trust_score")),
            incomplete=bool(payload.get("incomplete", False)),
            error_message=_optional_str(payload.get("error_message")),
            attribution_text=_optional_str(payload.get("attribution_text")),
        )


@dataclass(frozen=True)
class CacheEntry:
    """A cached resolution result and the time it was resolved."""

    result: ResolutionResult
    resolved_at_ms: int


@dataclass(frozen=True)
class CacheStats:
    """Diagnostic view of the result cache."""

    size: int
    keys: list[str] = field(default_factory=list)


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)  # type: ignore[arg-type]


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
