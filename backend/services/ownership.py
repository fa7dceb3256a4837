"""
Recipe ownership check - gate for every recipe mutation
"""
from database.repositories.recipe_repository import recipe_repository
from utils.debug import Loggers
from utils.errors import NotFoundError, ForbiddenError


async def ensure_recipe_owner(recipe_id: str, user_id: str, action: str = "modify") -> None:
    """Raise NotFoundError if the recipe doesn't exist, ForbiddenError if user_id didn't post it"""
    owner_id = await recipe_repository.get_owner_id(recipe_id)
    if owner_id is None:
        raise NotFoundError("Recipe", recipe_id)

    if owner_id != user_id:
        Loggers.recipes.warning("Ownership check failed", recipe_id=recipe_id,
                                user_id=user_id, action=action)
        raise ForbiddenError(f"You can only {action} your own recipes")
