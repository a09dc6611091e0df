"""Ingredient text parsing shared by network-backed sources."""

import re

_SEPARATORS = re.compile(r"[,;]|\band\b", re.IGNORECASE)
_ENCLOSING = re.compile(r"^[(\[]|[)\]]$")


def parse_ingredients(text: str | None) -> list[str]:
    """Split a raw ingredient statement into individual ingredients.

    Splits on commas, semicolons and the word "and", trims whitespace and
    strips one layer of enclosing brackets. Heuristic: nested sub-ingredient
    lists are flattened and non-English conjunctions are not recognized.
    """
    if not text:
        return []
    ingredients: list[str] = []
    for fragment in _SEPARATORS.split(text):
        cleaned = _ENCLOSING.sub("", fragment.strip()).strip()
        if cleaned:
            ingredients.append(cleaned)
    return ingredients
