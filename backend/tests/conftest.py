"""
Shared fixtures: in-memory stand-ins for the recipe and favorite repositories

FakeFavoriteRepository keeps the (user_id, recipe_id) pair unique under a lock,
the way the favorites_user_recipe_unique constraint does in PostgreSQL.
"""
import asyncio
import itertools
import sys
import os
import uuid
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


BASE_TIME = datetime(2026, 1, 19, 12, 0, 0)


class FakeRecipeRepository:
    def __init__(self):
        self.recipes = {}

    def put(self, recipe_id: str, name: str, owner_id: str = "owner-1") -> dict:
        recipe = {
            "id": recipe_id,
            "name": name,
            "instructions": f"Cook the {name.lower()}.",
            "thumbnail": None,
            "ingredients": ["salt"],
            "posted_at": BASE_TIME,
            "posted_by_id": owner_id,
            "posted_by_name": "Owner",
        }
        self.recipes[recipe_id] = recipe
        return recipe

    async def exists(self, recipe_id: str) -> bool:
        return recipe_id in self.recipes

    async def get_owner_id(self, recipe_id: str):
        recipe = self.recipes.get(recipe_id)
        return recipe["posted_by_id"] if recipe else None


class FakeFavoriteRepository:
    def __init__(self, recipes: FakeRecipeRepository):
        self.recipes = recipes
        self.rows = {}
        self._lock = asyncio.Lock()
        self._clock = itertools.count()

    def _new_row(self, user_id: str, recipe_id: str) -> dict:
        return {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "recipe_id": recipe_id,
            "created_at": BASE_TIME + timedelta(seconds=next(self._clock)),
        }

    async def add(self, user_id: str, recipe_id: str):
        # Yield first so concurrent callers interleave
        await asyncio.sleep(0)
        async with self._lock:
            key = (user_id, recipe_id)
            if key in self.rows:
                return None
            self.rows[key] = self._new_row(user_id, recipe_id)
            row = self.rows[key]
            return {"id": row["id"], "created_at": row["created_at"]}

    async def remove(self, user_id: str, recipe_id: str) -> bool:
        async with self._lock:
            return self.rows.pop((user_id, recipe_id), None) is not None

    async def toggle(self, user_id: str, recipe_id: str) -> bool:
        await asyncio.sleep(0)
        async with self._lock:
            key = (user_id, recipe_id)
            if self.rows.pop(key, None) is not None:
                return False
            self.rows[key] = self._new_row(user_id, recipe_id)
            return True

    async def find(self, user_id: str, recipe_id: str):
        return self.rows.get((user_id, recipe_id))

    async def count_for_recipe(self, recipe_id: str) -> int:
        return sum(1 for (_, r) in self.rows if r == recipe_id)

    async def list_for_user(self, user_id: str, limit: int = 10, offset: int = 0):
        mine = sorted(
            (row for (u, _), row in self.rows.items() if u == user_id),
            key=lambda row: row["created_at"],
            reverse=True
        )
        page = [
            {
                **self.recipes.recipes[row["recipe_id"]],
                "favorite_id": row["id"],
                "favorited_at": row["created_at"],
            }
            for row in mine[offset:offset + limit]
        ]
        return page, len(mine)


@pytest.fixture
def fake_recipes():
    return FakeRecipeRepository()


@pytest.fixture
def fake_favorites(fake_recipes):
    return FakeFavoriteRepository(fake_recipes)


@pytest.fixture
def favorites_engine(fake_recipes, fake_favorites, monkeypatch):
    """services.favorites wired to the in-memory repositories"""
    from services import favorites as favorites_service
    monkeypatch.setattr(favorites_service, "recipe_repository", fake_recipes)
    monkeypatch.setattr(favorites_service, "favorite_repository", fake_favorites)
    return favorites_service
