"""Spoonacular grocery products API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class SpoonacularClient(Protocol):
    """Interface for Spoonacular product lookups."""

    async def get_product_by_upc(self, upc: str) -> dict[str, object]:
        """Fetch a product by UPC and return raw API data."""

    async def search_products(self, query: str, number: int = 1) -> dict[str, object]:
        """Search grocery products by name and return raw API data."""

    async def get_product(self, product_id: int) -> dict[str, object]:
        """Fetch a product by Spoonacular id and return raw API data."""


@dataclass
class HttpxSpoonacularClient(SpoonacularClient):
    """HTTPX-backed Spoonacular client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout_seconds: float = 15.0
    ) -> "HttpxSpoonacularClient":
        """Create a Spoonacular client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"Accept": "application/json"}),
            timeout_seconds=timeout_seconds,
        )

    async def get_product_by_upc(self, upc: str) -> dict[str, object]:
        """Fetch a product by UPC."""
        return await self._get(f"/food/products/upc/{upc}")

    async def search_products(self, query: str, number: int = 1) -> dict[str, object]:
        """Search grocery products."""
        return await self._get(
            "/food/products/search", {"query": query, "number": number}
        )

    async def get_product(self, product_id: int) -> dict[str, object]:
        """Fetch a product by id."""
        return await self._get(f"/food/products/{product_id}")

    async def _get(
        self, path: str, params: dict[str, object] | None = None
    ) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params={"apiKey": self.api_key, **(params or {})},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
