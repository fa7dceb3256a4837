"""
Forkify Router - aggregated recipe search and external recipe details
"""
from fastapi import APIRouter, Depends
import httpx
from config import settings
from dependencies import get_http_client
from services.forkify import ForkifyClient
from services.search import search_recipes
from utils.errors import InvalidInputError
from utils.responses import success_response
from typing import Optional

router = APIRouter(prefix="/forkify", tags=["Search"])


def get_forkify_client(http_client: httpx.AsyncClient = Depends(get_http_client)) -> ForkifyClient:
    return ForkifyClient(
        http_client,
        base_url=settings.forkify_base_url,
        timeout=settings.external_search_timeout,
    )


@router.get("/search")
async def search(q: Optional[str] = None, client: ForkifyClient = Depends(get_forkify_client)):
    """Local recipes matching q followed by Forkify results with a thumbnail"""
    results = await search_recipes(q, client)
    message = None if results["recipes"] else "No recipes found"
    return success_response(results, message)


@router.get("/get")
async def get_external_recipe(rId: Optional[str] = None, client: ForkifyClient = Depends(get_forkify_client)):
    if not rId or not rId.strip():
        raise InvalidInputError('Recipe ID parameter "rId" is required')

    recipe = await client.get_recipe(rId.strip())
    return success_response({"recipe": recipe.model_dump()})
