"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from food_resolver.adapters.fdc_client import HttpxFdcClient
from food_resolver.adapters.open_food_facts_client import (
    PRODUCT_FIELDS,
    HttpxOpenFoodFactsClient,
)
from food_resolver.adapters.spoonacular_client import HttpxSpoonacularClient


def test_off_client_product_read_sends_user_agent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": 1, "product": {}})

    transport = httpx.MockTransport(handler)
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test",
        user_agent="FoodResolver/test (qa@example.com)",
        http_client=httpx.AsyncClient(transport=transport),
    )

    payload = asyncio.run(client.get_product("049000006346"))

    assert payload == {"status": 1, "product": {}}
    request = seen[0]
    assert request.url.path == "/api/v2/product/049000006346.json"
    assert request.url.params["fields"] == PRODUCT_FIELDS
    assert request.headers["User-Agent"] == "FoodResolver/test (qa@example.com)"


def test_off_client_search_params() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/cgi/search.pl"
        assert request.url.params["search_terms"] == "granola bar"
        assert request.url.params["json"] == "1"
        assert request.url.params["page_size"] == "3"
        return httpx.Response(200, json={"products": []})

    transport = httpx.MockTransport(handler)
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test",
        user_agent="ua",
        http_client=httpx.AsyncClient(transport=transport),
    )

    payload = asyncio.run(client.search_products("granola bar", page_size=3))

    assert payload == {"products": []}


def test_off_client_raises_for_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={})

    transport = httpx.MockTransport(handler)
    client = HttpxOpenFoodFactsClient(
        base_url="https://off.test",
        user_agent="ua",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_product("049000006346"))


def test_spoonacular_client_paths_and_api_key() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        assert request.url.params["apiKey"] == "spoon-key"
        if request.url.path.endswith("/search"):
            assert request.url.params["query"] == "cola"
            assert request.url.params["number"] == "1"
        return httpx.Response(200, json={"ok": True})

    transport = httpx.MockTransport(handler)
    client = HttpxSpoonacularClient(
        api_key="spoon-key",
        base_url="https://spoon.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    async def scenario() -> None:
        await client.get_product_by_upc("049000006346")
        await client.search_products("cola")
        await client.get_product(42)
        await client.close()

    asyncio.run(scenario())

    assert seen_paths == [
        "/food/products/upc/049000006346",
        "/food/products/search",
        "/food/products/42",
    ]


def test_fdc_client_search_and_get() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["api_key"] == "fdc-key"
        if request.url.path.endswith("/foods/search"):
            payload = json.loads(request.content.decode())
            assert request.method == "POST"
            assert payload == {
                "query": "049000006346",
                "pageSize": 5,
                "dataType": ["Branded"],
            }
            return httpx.Response(200, json={"foods": []})
        if request.url.path.endswith("/food/123"):
            return httpx.Response(200, json={"fdcId": 123})
        return httpx.Response(404, json={})

    transport = httpx.MockTransport(handler)
    client = HttpxFdcClient(
        api_key="fdc-key",
        base_url="https://fdc.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    search = asyncio.run(client.search_foods("049000006346", page_size=5))
    food = asyncio.run(client.get_food(123))

    assert search == {"foods": []}
    assert food == {"fdcId": 123}
