"""Identifier validation and normalization."""

import re
from dataclasses import dataclass
from typing import Literal

from food_resolver.domain.errors import IdentifierValidationError

MIN_BARCODE_DIGITS = 8
MAX_BARCODE_DIGITS = 14
MAX_IDENTIFIER_LENGTH = 200

IdentifierKind = Literal["barcode", "name"]

_DIGITS = re.compile(r"^[0-9]+$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class NormalizedIdentifier:
    """A validated identifier ready for cache lookup and provider calls."""

    value: str
    kind: IdentifierKind

    @property
    def is_barcode(self) -> bool:
        return self.kind == "barcode"

    @property
    def cache_key(self) -> str:
        if self.is_barcode:
            return f"barcode_{self.value}"
        return f"name_{self.value.casefold()}"


def validate_identifier(raw: str) -> NormalizedIdentifier:
    """Validate a barcode or free-text food name.

    Digit-only input is treated as a barcode and must have 8 to 14 ASCII digits
    (GTIN-8 through GTIN-14). Anything else is a name lookup and must be
    non-empty and at most 200 characters after whitespace is collapsed.
    Raises ``IdentifierValidationError`` with a readable reason otherwise.
    """
    if raw is None:
        raise IdentifierValidationError("Identifier is required.")
    cleaned = _WHITESPACE.sub(" ", str(raw)).strip()
    if not cleaned:
        raise IdentifierValidationError("Identifier is empty.")
    if len(cleaned) > MAX_IDENTIFIER_LENGTH:
        raise IdentifierValidationError(
            f"Identifier is longer than {MAX_IDENTIFIER_LENGTH} characters."
        )
    if _DIGITS.match(cleaned):
        if not MIN_BARCODE_DIGITS <= len(cleaned) <= MAX_BARCODE_DIGITS:
            raise IdentifierValidationError(
                "Invalid barcode format. Must be "
                f"{MIN_BARCODE_DIGITS}-{MAX_BARCODE_DIGITS} digits."
            )
        return NormalizedIdentifier(value=cleaned, kind="barcode")
    return NormalizedIdentifier(value=cleaned, kind="name")
