"""
Forkify client - third-party recipe search

The API has answered with two incompatible search payloads over time:

    v1: {"count": 28, "recipes": [{"recipe_id": "...", "title": ..., "image_url": ..., "publisher": ...}]}
    v2: {"status": "success", "results": 59, "data": {"recipes": [{"id": "...", "title": ..., ...}]}}

Each recognized shape has its own normalizer into ExternalRecipe. Anything
else is the UNRECOGNIZED shape and normalizes to an empty list.
"""
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from models import ExternalRecipe, ExternalRecipeDetail
from utils.debug import log_external_request
from utils.errors import ExternalSearchError, NotFoundError, ServiceUnavailableError

SERVICE_NAME = "forkify"


class ResponseShape(Enum):
    V1 = "v1"
    V2 = "v2"
    UNRECOGNIZED = "unrecognized"


def detect_shape(body: Any) -> ResponseShape:
    if not isinstance(body, dict):
        return ResponseShape.UNRECOGNIZED
    if isinstance(body.get("recipes"), list):
        return ResponseShape.V1
    data = body.get("data")
    if isinstance(data, dict) and isinstance(data.get("recipes"), list):
        return ResponseShape.V2
    return ResponseShape.UNRECOGNIZED


def has_usable_image(url: Any) -> bool:
    return isinstance(url, str) and url.strip().startswith(("http://", "https://"))


def _ingredient_text(item: Any) -> Optional[str]:
    """v1 ingredients are strings; v2 uses {quantity, unit, description}"""
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        parts = [item.get("quantity"), item.get("unit"), item.get("description")]
        text = " ".join(str(p).strip() for p in parts if p not in (None, ""))
        return text or None
    return None


def _ingredients(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [text for text in (_ingredient_text(i) for i in raw) if text]


def _to_external(item: Any, id_key: str) -> Optional[ExternalRecipe]:
    """One search hit -> ExternalRecipe, or None when it is incomplete"""
    if not isinstance(item, dict):
        return None
    recipe_id = item.get(id_key)
    title = item.get("title")
    image_url = item.get("image_url")
    if recipe_id in (None, "") or not isinstance(title, str) or not title.strip():
        return None
    # Hits without a thumbnail are treated as incomplete
    if not has_usable_image(image_url):
        return None
    publisher = item.get("publisher")
    return ExternalRecipe(
        recipe_id=str(recipe_id),
        title=title.strip(),
        image_url=image_url.strip(),
        publisher=publisher if isinstance(publisher, str) else None,
        ingredients=_ingredients(item.get("ingredients")),
    )


def _normalize_v1(body: dict) -> List[ExternalRecipe]:
    return [r for r in (_to_external(i, "recipe_id") for i in body["recipes"]) if r]


def _normalize_v2(body: dict) -> List[ExternalRecipe]:
    return [r for r in (_to_external(i, "id") for i in body["data"]["recipes"]) if r]


NORMALIZERS: Dict[ResponseShape, Callable[[Any], List[ExternalRecipe]]] = {
    ResponseShape.V1: _normalize_v1,
    ResponseShape.V2: _normalize_v2,
    ResponseShape.UNRECOGNIZED: lambda body: [],
}


def normalize_search_response(body: Any) -> List[ExternalRecipe]:
    return NORMALIZERS[detect_shape(body)](body)


def normalize_recipe_detail(body: Any) -> Optional[ExternalRecipeDetail]:
    """Detail payloads: v1 {"recipe": {...}}, v2 {"data": {"recipe": {...}}}"""
    if not isinstance(body, dict):
        return None
    recipe = body.get("recipe")
    id_key = "recipe_id"
    if not isinstance(recipe, dict):
        data = body.get("data")
        recipe = data.get("recipe") if isinstance(data, dict) else None
        id_key = "id"
    if not isinstance(recipe, dict) or recipe.get(id_key) in (None, ""):
        return None

    image_url = recipe.get("image_url")
    return ExternalRecipeDetail(
        recipe_id=str(recipe[id_key]),
        title=str(recipe.get("title") or ""),
        image_url=image_url if has_usable_image(image_url) else None,
        publisher=recipe.get("publisher") if isinstance(recipe.get("publisher"), str) else None,
        source_url=recipe.get("source_url") if isinstance(recipe.get("source_url"), str) else None,
        ingredients=_ingredients(recipe.get("ingredients")),
    )


class ForkifyClient:
    """Thin async wrapper over the Forkify HTTP API with an explicit timeout"""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, timeout: float):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _search_endpoints(self, query: str) -> List[tuple]:
        # v1 first, v2 as fallback
        return [
            ("search_v1", f"{self.base_url}/search", {"q": query}),
            ("search_v2", f"{self.base_url}/v2/recipes", {"search": query}),
        ]

    async def _get_json(self, operation: str, url: str, params: dict) -> Any:
        start_time = time.time()
        try:
            response = await self.http_client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            log_external_request(SERVICE_NAME, operation, status_code=e.response.status_code,
                                 duration_ms=(time.time() - start_time) * 1000, error="non-2xx status")
            raise ExternalSearchError(operation, f"status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            log_external_request(SERVICE_NAME, operation,
                                 duration_ms=(time.time() - start_time) * 1000, error=type(e).__name__)
            raise ExternalSearchError(operation, type(e).__name__) from e
        except ValueError as e:
            log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                                 duration_ms=(time.time() - start_time) * 1000, error="invalid JSON body")
            raise ExternalSearchError(operation, "invalid JSON body") from e

        log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                             duration_ms=(time.time() - start_time) * 1000)
        return body

    async def search(self, query: str) -> List[ExternalRecipe]:
        """Search v1 then v2; first recognizable body wins.

        Raises ExternalSearchError only if no endpoint answered with a
        recognizable body and at least one of them failed.
        """
        last_error: Optional[ExternalSearchError] = None
        for operation, url, params in self._search_endpoints(query):
            try:
                body = await self._get_json(operation, url, params)
            except ExternalSearchError as e:
                last_error = e
                continue

            shape = detect_shape(body)
            if shape is ResponseShape.UNRECOGNIZED:
                log_external_request(SERVICE_NAME, operation, results=0, error="unrecognized body shape")
                continue

            recipes = NORMALIZERS[shape](body)
            log_external_request(SERVICE_NAME, operation, results=len(recipes))
            return recipes

        if last_error is not None:
            raise last_error
        return []

    async def get_recipe(self, recipe_id: str) -> ExternalRecipeDetail:
        """Fetch one recipe's details; NotFoundError for unknown ids"""
        operation = "get"
        start_time = time.time()
        try:
            response = await self.http_client.get(
                f"{self.base_url}/get", params={"rId": recipe_id}, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            log_external_request(SERVICE_NAME, operation,
                                 duration_ms=(time.time() - start_time) * 1000, error=type(e).__name__)
            raise ServiceUnavailableError("Recipe service") from e

        duration_ms = (time.time() - start_time) * 1000
        if response.status_code == 404:
            log_external_request(SERVICE_NAME, operation, status_code=404, duration_ms=duration_ms)
            raise NotFoundError("Recipe", recipe_id)
        if response.is_error:
            log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                                 duration_ms=duration_ms, error="non-2xx status")
            raise ServiceUnavailableError("Recipe service")

        try:
            body = response.json()
        except ValueError as e:
            log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                                 duration_ms=duration_ms, error="invalid JSON body")
            raise ServiceUnavailableError("Recipe service") from e

        detail = normalize_recipe_detail(body)
        if detail is None:
            log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                                 duration_ms=duration_ms, error="unrecognized body shape")
            raise NotFoundError("Recipe", recipe_id)

        log_external_request(SERVICE_NAME, operation, status_code=response.status_code,
                             duration_ms=duration_ms, results=1)
        return detail
