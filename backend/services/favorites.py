"""
Favorites engine - exactly-once (user, recipe) bookmarks

Every write goes through a single statement or transaction guarded by the
favorites_user_recipe_unique constraint, so concurrent requests for the same
pair can't double-insert or lose a toggle.
"""
import asyncpg
from typing import Tuple, List, Optional

from database.repositories.favorite_repository import favorite_repository
from database.repositories.recipe_repository import recipe_repository
from utils.debug import Loggers
from utils.errors import NotFoundError, AlreadyExistsError, handle_database_error

logger = Loggers.favorites


async def _require_recipe(recipe_id: str) -> None:
    if not await recipe_repository.exists(recipe_id):
        raise NotFoundError("Recipe", recipe_id)


async def add_favorite(user_id: str, recipe_id: str) -> dict:
    """Insert the pair and return {id, created_at}"""
    await _require_recipe(recipe_id)

    try:
        favorite = await favorite_repository.add(user_id, recipe_id)
    except asyncpg.ForeignKeyViolationError:
        # Recipe deleted between the existence check and the insert
        raise NotFoundError("Recipe", recipe_id)
    except asyncpg.PostgresError as e:
        handle_database_error(e, "add to favorites")

    if favorite is None:
        raise AlreadyExistsError("Recipe is already in your favorites", "Favorite")

    logger.info("Favorite added", user_id=user_id, recipe_id=recipe_id)
    return favorite


async def remove_favorite(user_id: str, recipe_id: str) -> None:
    try:
        removed = await favorite_repository.remove(user_id, recipe_id)
    except asyncpg.PostgresError as e:
        handle_database_error(e, "remove from favorites")

    if not removed:
        raise NotFoundError("Favorite", recipe_id)
    logger.info("Favorite removed", user_id=user_id, recipe_id=recipe_id)


async def toggle_favorite(user_id: str, recipe_id: str) -> bool:
    """Flip membership and return the state after the call (True = favorited)"""
    await _require_recipe(recipe_id)

    try:
        is_favorited = await favorite_repository.toggle(user_id, recipe_id)
    except asyncpg.ForeignKeyViolationError:
        raise NotFoundError("Recipe", recipe_id)
    except asyncpg.PostgresError as e:
        handle_database_error(e, "toggle favorite")

    logger.info("Favorite toggled", user_id=user_id, recipe_id=recipe_id, is_favorited=is_favorited)
    return is_favorited


async def check_favorite(user_id: str, recipe_id: str) -> Tuple[bool, Optional[str]]:
    """Return (is_favorited, favorite_id or None)"""
    favorite = await favorite_repository.find(user_id, recipe_id)
    if favorite is None:
        return False, None
    return True, favorite["id"]


async def count_favorites(recipe_id: str) -> int:
    return await favorite_repository.count_for_recipe(recipe_id)


async def list_favorites(user_id: str, limit: int, offset: int) -> Tuple[List[dict], int]:
    """Favorited recipes for a user, newest favorite first"""
    return await favorite_repository.list_for_user(user_id, limit=limit, offset=offset)
