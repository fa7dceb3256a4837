"""
Search aggregator - local recipes first, then Forkify results

The external branch never raises: any failure there degrades the search to
local-only results. Only a failing local query turns into an error response.
"""
import asyncio
from typing import List

from config import settings
from database.repositories.recipe_repository import recipe_repository
from models import ExternalRecipe, LocalSearchResult
from services.forkify import ForkifyClient
from utils.debug import Loggers
from utils.errors import ExternalSearchError, InvalidInputError

logger = Loggers.search


async def _search_external(client: ForkifyClient, query: str) -> List[ExternalRecipe]:
    # One overall deadline for the whole v1/v2 fallback chain
    try:
        return await asyncio.wait_for(client.search(query), settings.external_search_timeout)
    except asyncio.TimeoutError:
        logger.warning("External search timed out, using local results only",
                       timeout=settings.external_search_timeout)
    except ExternalSearchError as e:
        logger.warning("External search unavailable, using local results only",
                       operation=e.operation, reason=e.reason)
    except Exception:
        logger.exception("Unexpected external search failure, using local results only")
    return []


async def search_recipes(query: str, client: ForkifyClient) -> dict:
    """Merge local name matches with external hits, each tagged with its source"""
    query = (query or "").strip()
    if not query:
        raise InvalidInputError('Query parameter "q" is required')

    local_rows, external = await asyncio.gather(
        recipe_repository.search_by_name(query, limit=settings.local_search_limit),
        _search_external(client, query),
    )

    local = [LocalSearchResult(**row).model_dump() for row in local_rows]
    recipes = local + [recipe.model_dump() for recipe in external]

    logger.info("Search completed", query=query, local=len(local), external=len(external))
    return {
        "recipes": recipes,
        "localCount": len(local),
        "externalCount": len(external),
    }
