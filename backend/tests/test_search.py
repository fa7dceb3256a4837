"""
Search tests - Forkify response normalization, client fallback and the
local + external aggregator
"""
import asyncio
import sys
import os
import time
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import settings
from services.forkify import (
    ForkifyClient,
    ResponseShape,
    detect_shape,
    has_usable_image,
    normalize_recipe_detail,
    normalize_search_response,
)
from services.search import search_recipes
from utils.errors import (
    ExternalSearchError,
    InvalidInputError,
    NotFoundError,
    ServiceUnavailableError,
)

BASE_URL = "https://forkify.test/api"

V1_BODY = {
    "count": 3,
    "recipes": [
        {"recipe_id": "47746", "title": "Best Pizza Dough Ever",
         "image_url": "http://forkify.test/img/pizza.jpg", "publisher": "101 Cookbooks"},
        {"recipe_id": "54454", "title": "Pizza Without Picture", "image_url": ""},
        {"recipe_id": "35477", "title": "Pizza Dip",
         "image_url": "https://forkify.test/img/dip.jpg", "publisher": "Closet Cooking"},
    ],
}

V2_BODY = {
    "status": "success",
    "results": 2,
    "data": {
        "recipes": [
            {"id": "5ed6604591c37cdc054bcd09", "title": "Cauliflower Pizza Crust",
             "image_url": "http://forkify.test/img/cauli.jpg", "publisher": "Closet Cooking"},
            {"id": "5ed6604591c37cdc054bcc13", "title": "Broken Image Pizza",
             "image_url": "ftp://forkify.test/img/broken.jpg"},
        ]
    },
}


def _client(handler) -> ForkifyClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ForkifyClient(http_client, base_url=BASE_URL, timeout=1.0)


def _local_row(recipe_id: str, name: str) -> dict:
    return {
        "id": recipe_id,
        "name": name,
        "instructions": "Bake at 250C for 10 minutes.",
        "thumbnail": None,
        "ingredients": ["flour", "tomato", "mozzarella"],
        "posted_at": datetime(2026, 1, 19, 12, 0, 0),
        "posted_by_id": "user-1",
        "posted_by_name": "Alice",
    }


class TestNormalization:

    def test_detect_shape(self):
        assert detect_shape(V1_BODY) is ResponseShape.V1
        assert detect_shape(V2_BODY) is ResponseShape.V2
        assert detect_shape({"error": "Couldn't find recipe"}) is ResponseShape.UNRECOGNIZED
        assert detect_shape({"data": {"recipes": "nope"}}) is ResponseShape.UNRECOGNIZED
        assert detect_shape(["not", "a", "dict"]) is ResponseShape.UNRECOGNIZED
        assert detect_shape(None) is ResponseShape.UNRECOGNIZED

    def test_v1_hits_without_image_are_dropped(self):
        recipes = normalize_search_response(V1_BODY)

        assert [r.recipe_id for r in recipes] == ["47746", "35477"]
        assert all(r.source == "external" for r in recipes)
        assert recipes[0].publisher == "101 Cookbooks"

    def test_v2_uses_id_and_filters_non_http_images(self):
        recipes = normalize_search_response(V2_BODY)

        assert len(recipes) == 1
        assert recipes[0].recipe_id == "5ed6604591c37cdc054bcd09"
        assert recipes[0].title == "Cauliflower Pizza Crust"

    def test_unrecognized_body_is_empty(self):
        assert normalize_search_response({"unexpected": True}) == []
        assert normalize_search_response("<html>oops</html>") == []

    def test_incomplete_hits_are_skipped(self):
        body = {"recipes": [
            {"title": "No id", "image_url": "http://x.test/a.jpg"},
            {"recipe_id": "1", "title": "   ", "image_url": "http://x.test/a.jpg"},
            "not a dict",
        ]}
        assert normalize_search_response(body) == []

    def test_has_usable_image(self):
        assert has_usable_image("https://x.test/a.jpg")
        assert has_usable_image(" http://x.test/a.jpg ")
        assert not has_usable_image("")
        assert not has_usable_image(None)
        assert not has_usable_image("data:image/png;base64,AAAA")

    def test_recipe_detail_v2_ingredients(self):
        body = {"status": "success", "data": {"recipe": {
            "id": "abc",
            "title": "Pizza",
            "publisher": "Closet Cooking",
            "source_url": "http://closetcooking.test/pizza",
            "image_url": "http://forkify.test/img/pizza.jpg",
            "ingredients": [
                {"quantity": 1, "unit": "cup", "description": "flour"},
                {"quantity": None, "unit": "", "description": "salt"},
            ],
        }}}

        detail = normalize_recipe_detail(body)

        assert detail.recipe_id == "abc"
        assert detail.ingredients == ["1 cup flour", "salt"]
        assert detail.source_url == "http://closetcooking.test/pizza"

    def test_recipe_detail_v1(self):
        body = {"recipe": {"recipe_id": "47746", "title": "Pizza", "image_url": "",
                           "ingredients": ["2 cups flour", " "]}}

        detail = normalize_recipe_detail(body)

        assert detail.recipe_id == "47746"
        assert detail.image_url is None
        assert detail.ingredients == ["2 cups flour"]

    def test_recipe_detail_unrecognized(self):
        assert normalize_recipe_detail({"error": "Invalid recipe id"}) is None


class TestForkifyClient:

    @pytest.mark.asyncio
    async def test_search_v1(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=V1_BODY)

        recipes = await _client(handler).search("pizza")

        assert len(recipes) == 2
        assert seen[0].path == "/api/search"
        assert seen[0].params["q"] == "pizza"

    @pytest.mark.asyncio
    async def test_falls_back_to_v2_after_server_error(self):
        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(500, text="boom")
            assert request.url.params["search"] == "pizza"
            return httpx.Response(200, json=V2_BODY)

        recipes = await _client(handler).search("pizza")
        assert [r.recipe_id for r in recipes] == ["5ed6604591c37cdc054bcd09"]

    @pytest.mark.asyncio
    async def test_falls_back_to_v2_after_unrecognized_body(self):
        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json={"error": "Shape changed"})
            return httpx.Response(200, json=V2_BODY)

        recipes = await _client(handler).search("pizza")
        assert len(recipes) == 1

    @pytest.mark.asyncio
    async def test_all_endpoints_failing_raises(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with pytest.raises(ExternalSearchError):
            await _client(handler).search("pizza")

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self):
        def handler(request):
            return httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})

        with pytest.raises(ExternalSearchError) as exc:
            await _client(handler).search("pizza")
        assert exc.value.reason == "invalid JSON body"

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ExternalSearchError) as exc:
            await _client(handler).search("pizza")
        assert exc.value.reason == "ReadTimeout"

    @pytest.mark.asyncio
    async def test_only_unrecognized_bodies_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"message": "nothing here"})

        assert await _client(handler).search("pizza") == []

    @pytest.mark.asyncio
    async def test_get_recipe_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"error": "Couldn't find recipe"})

        with pytest.raises(NotFoundError):
            await _client(handler).get_recipe("nope")

    @pytest.mark.asyncio
    async def test_get_recipe_upstream_failure(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(ServiceUnavailableError) as exc:
            await _client(handler).get_recipe("47746")
        assert exc.value.status_code == 503

    @pytest.mark.asyncio
    async def test_get_recipe(self):
        def handler(request):
            assert request.url.params["rId"] == "47746"
            return httpx.Response(200, json={"recipe": {
                "recipe_id": "47746", "title": "Best Pizza Dough Ever",
                "image_url": "http://forkify.test/img/pizza.jpg",
                "ingredients": ["4 1/2 cups flour"],
            }})

        detail = await _client(handler).get_recipe("47746")
        assert detail.title == "Best Pizza Dough Ever"
        assert detail.image_url == "http://forkify.test/img/pizza.jpg"


class TestAggregator:

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self):
        client = MagicMock()
        client.search = AsyncMock(return_value=[])

        for query in (None, "", "   "):
            with pytest.raises(InvalidInputError) as exc:
                await search_recipes(query, client)
            assert exc.value.message == 'Query parameter "q" is required'
        client.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_pizza_local_results_come_first(self):
        def handler(request):
            return httpx.Response(200, json=V1_BODY)

        with patch('services.search.recipe_repository') as mock_repo:
            mock_repo.search_by_name = AsyncMock(return_value=[_local_row("r1", "Pizza Margherita")])

            results = await search_recipes("  pizza ", _client(handler))

        mock_repo.search_by_name.assert_awaited_once()
        assert mock_repo.search_by_name.await_args.args[0] == "pizza"
        assert results["localCount"] == 1
        assert results["externalCount"] == 2
        assert [r["source"] for r in results["recipes"]] == ["local", "external", "external"]
        assert results["recipes"][0]["name"] == "Pizza Margherita"
        assert results["recipes"][0]["posted_at"] == "2026-01-19T12:00:00+00:00"
        assert all(r["image_url"].startswith("http") for r in results["recipes"][1:])

    @pytest.mark.asyncio
    async def test_external_failure_degrades_to_local(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch('services.search.recipe_repository') as mock_repo:
            mock_repo.search_by_name = AsyncMock(return_value=[_local_row("r1", "Pizza Margherita")])

            results = await search_recipes("pizza", _client(handler))

        assert results["localCount"] == 1
        assert results["externalCount"] == 0
        assert len(results["recipes"]) == 1

    @pytest.mark.asyncio
    async def test_slow_external_chain_is_cut_off_at_deadline(self):
        calls = []

        async def handler(request):
            calls.append(request.url.path)
            await asyncio.sleep(5)
            return httpx.Response(200, json=V1_BODY)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = ForkifyClient(http_client, base_url=BASE_URL, timeout=30.0)

        with patch('services.search.recipe_repository') as mock_repo, \
             patch.object(settings, "external_search_timeout", 0.05):
            mock_repo.search_by_name = AsyncMock(return_value=[_local_row("r1", "Pizza Margherita")])

            started = time.monotonic()
            results = await search_recipes("pizza", client)
            elapsed = time.monotonic() - started

        assert elapsed < 2
        assert len(calls) == 1
        assert results["localCount"] == 1
        assert results["externalCount"] == 0
        assert [r["source"] for r in results["recipes"]] == ["local"]

    @pytest.mark.asyncio
    async def test_unexpected_external_error_is_swallowed(self):
        client = MagicMock()
        client.search = AsyncMock(side_effect=RuntimeError("bug in client"))

        with patch('services.search.recipe_repository') as mock_repo:
            mock_repo.search_by_name = AsyncMock(return_value=[])

            results = await search_recipes("pizza", client)

        assert results == {"recipes": [], "localCount": 0, "externalCount": 0}

    @pytest.mark.asyncio
    async def test_local_failure_propagates(self):
        client = MagicMock()
        client.search = AsyncMock(return_value=[])

        with patch('services.search.recipe_repository') as mock_repo:
            mock_repo.search_by_name = AsyncMock(side_effect=RuntimeError("database down"))

            with pytest.raises(RuntimeError):
                await search_recipes("pizza", client)
