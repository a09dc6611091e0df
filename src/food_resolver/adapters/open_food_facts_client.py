"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

PRODUCT_FIELDS = (
    "product_name,product_name_en,brands,ingredients_text,ingredients_text_en,"
    "nutriments,serving_size,serving_quantity"
)


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""

    async def search_products(
        self, query: str, page_size: int = 5
    ) -> dict[str, object]:
        """Search products by free text and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client.

    Open Food Facts asks every client to identify itself with a User-Agent.
    """

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15.0

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 15.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            user_agent=user_agent,
            http_client=httpx.AsyncClient(
                headers={"User-Agent": user_agent, "Accept": "application/json"}
            ),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode from the v2 API."""
        url = f"{self.base_url}/api/v2/product/{barcode}.json"
        response = await self.http_client.get(
            url,
            params={"fields": PRODUCT_FIELDS},
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def search_products(
        self, query: str, page_size: int = 5
    ) -> dict[str, object]:
        """Search products by name."""
        url = f"{self.base_url}/cgi/search.pl"
        response = await self.http_client.get(
            url,
            params={
                "search_terms": query,
                "search_simple": 1,
                "action": "process",
                "json": 1,
                "page_size": page_size,
                "fields": PRODUCT_FIELDS,
            },
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
