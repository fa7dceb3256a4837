# Repository layer for PostgreSQL database operations
from .base_repository import BaseRepository, parse_rowcount
from .user_repository import UserRepository, user_repository
from .recipe_repository import (
    RecipeRepository,
    recipe_repository,
    escape_like,
    normalize_ingredients,
)
from .favorite_repository import FavoriteRepository, favorite_repository

__all__ = [
    "BaseRepository",
    "parse_rowcount",
    "UserRepository",
    "user_repository",
    "RecipeRepository",
    "recipe_repository",
    "escape_like",
    "normalize_ingredients",
    "FavoriteRepository",
    "favorite_repository",
]
