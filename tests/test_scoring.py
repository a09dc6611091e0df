"""Tests for trust scoring and completeness."""

from food_resolver.domain.food import FoodRecord
from food_resolver.services.scoring import (
    LOCAL_FALLBACK,
    OPEN_FOOD_FACTS,
    USDA_FDC,
    TrustScorer,
    is_incomplete,
)
from tests.conftest import make_record


def test_complete_record_is_capped_at_one() -> None:
    scorer = TrustScorer()

    assert scorer.score(make_record(), USDA_FDC) == 1.0


def test_score_starts_from_source_weight() -> None:
    scorer = TrustScorer()
    bare = FoodRecord(product_name="", serving_size_g=0)

    assert scorer.score(bare, OPEN_FOOD_FACTS) == 0.85
    assert scorer.score(bare, LOCAL_FALLBACK) == 0.6
    assert scorer.score(bare, "Unheard Of API") == 0.5


def test_bonuses_add_up() -> None:
    scorer = TrustScorer(weights={"Test": 0.4})
    record = make_record(ingredients=())

    # name, brand, three nutrients, serving size
    assert scorer.score(record, "Test") == 0.7


def test_score_is_deterministic() -> None:
    scorer = TrustScorer()
    record = make_record(brand="")

    assert scorer.score(record, OPEN_FOOD_FACTS) == scorer.score(
        record, OPEN_FOOD_FACTS
    )


def test_complete_record_is_not_incomplete() -> None:
    assert is_incomplete(make_record()) is False


def test_missing_fields_flag_incomplete() -> None:
    assert is_incomplete(make_record(brand="")) is True
    assert is_incomplete(make_record(ingredients=())) is True
    assert is_incomplete(make_record(with_nutrition=False)) is True
    assert is_incomplete(make_record(serving_size_g=0)) is True
    assert is_incomplete(make_record(name="  ")) is True


def test_high_score_can_still_be_incomplete() -> None:
    record = make_record(ingredients=())

    assert TrustScorer().score(record, USDA_FDC) >= 0.8
    assert is_incomplete(record) is True
