"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    cache_table: str = "food_resolution_cache"
    cache_validity_days: float = 30
    quality_threshold: float = 0.8
    provider_timeout_seconds: float = 10.0
    resolve_deadline_seconds: float | None = 30.0
    warm_cache_delay_seconds: float = 0.1
    warm_cache_identifiers: str | None = None
    user_agent: str = "FoodResolver/1.1.0 (contact@foodresolver.app)"
    off_base_url: str = "https://world.openfoodfacts.org"
    off_product_reads_per_minute: int = 100
    off_searches_per_minute: int = 10
    spoonacular_api_key: str | None = None
    spoonacular_base_url: str = "https://api.spoonacular.com"
    spoonacular_calls_per_hour: int = 150
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    fdc_calls_per_hour: int = 1000
    synthesize_unknown_items: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_identifier_list(raw: str | None) -> list[str]:
    """Parse a comma or newline separated list of identifiers."""
    if raw is None:
        return []
    identifiers: list[str] = []
    for line in raw.replace(",", "\n").splitlines():
        value = line.strip()
        if value and value not in identifiers:
            identifiers.append(value)
    return identifiers
