"""
Favorite Repository - (user, recipe) bookmark rows

Uniqueness of the pair is enforced by the favorites_user_recipe_unique
constraint; every write here leans on it instead of a read-then-write.
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Tuple
from .base_repository import BaseRepository
from .recipe_repository import RECIPE_COLUMNS, normalize_ingredients
from utils.debug import log_db_query


def _now() -> datetime:
    # favorites.created_at is a naive UTC TIMESTAMP
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FavoriteRepository(BaseRepository):
    """Repository for favorite operations"""

    def __init__(self):
        super().__init__("favorites")

    async def add(self, user_id: str, recipe_id: str) -> Optional[dict]:
        """Insert the pair; returns None when it already exists.

        Raises asyncpg.ForeignKeyViolationError when the recipe is gone.
        """
        rows = await self._fetch(
            "INSERT",
            """
            INSERT INTO favorites (id, user_id, recipe_id, created_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT ON CONSTRAINT favorites_user_recipe_unique DO NOTHING
            RETURNING id, created_at
            """,
            [str(uuid.uuid4()), user_id, recipe_id, _now()],
            {"user_id": user_id, "recipe_id": recipe_id}
        )
        return self._load(rows[0]) if rows else None

    async def remove(self, user_id: str, recipe_id: str) -> bool:
        """Delete the pair; returns False when there was nothing to delete"""
        rowcount = await self._execute(
            "DELETE",
            "DELETE FROM favorites WHERE user_id = $1 AND recipe_id = $2",
            [user_id, recipe_id],
            {"user_id": user_id, "recipe_id": recipe_id}
        )
        return rowcount > 0

    async def toggle(self, user_id: str, recipe_id: str) -> bool:
        """Flip membership of the pair in one transaction and return the new state.

        The delete decides: if it removed a row the pair is now absent. Otherwise
        the insert runs; a concurrent insert of the same pair makes ours a no-op,
        and the pair is present either way, so the reported state always matches
        the table.
        """
        start_time = time.time()
        pool = await self._get_db()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    deleted = await conn.fetchval(
                        "DELETE FROM favorites WHERE user_id = $1 AND recipe_id = $2 RETURNING id",
                        user_id, recipe_id
                    )
                    if deleted is None:
                        await conn.execute(
                            """
                            INSERT INTO favorites (id, user_id, recipe_id, created_at)
                            VALUES ($1, $2, $3, $4)
                            ON CONFLICT ON CONSTRAINT favorites_user_recipe_unique DO NOTHING
                            """,
                            str(uuid.uuid4()), user_id, recipe_id, _now()
                        )
        except Exception as e:
            log_db_query("TOGGLE", self.table_name, (time.time() - start_time) * 1000, error=str(e))
            raise

        log_db_query("TOGGLE", self.table_name, (time.time() - start_time) * 1000,
                     rows_affected=1, query_params={"user_id": user_id, "recipe_id": recipe_id})
        return deleted is None

    async def find(self, user_id: str, recipe_id: str) -> Optional[dict]:
        return await self.find_one({"user_id": user_id, "recipe_id": recipe_id})

    async def count_for_recipe(self, recipe_id: str) -> int:
        return await self.count({"recipe_id": recipe_id})

    async def list_for_user(
        self,
        user_id: str,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[dict], int]:
        """A user's favorited recipes, most recently favorited first"""
        total = await self.count({"user_id": user_id})

        rows = await self._fetch(
            "SELECT_MANY",
            f"""
            SELECT f.id AS favorite_id, f.created_at AS favorited_at, {RECIPE_COLUMNS}
            FROM favorites f
            JOIN recipes r ON f.recipe_id = r.id
            JOIN users u ON r.posted_by_id = u.id
            WHERE f.user_id = $1
            ORDER BY f.created_at DESC
            LIMIT $2 OFFSET $3
            """,
            [user_id, limit, offset],
            {"user_id": user_id, "limit": limit, "offset": offset}
        )

        favorites = []
        for row in rows:
            item = self._load(row)
            item["ingredients"] = normalize_ingredients(
                self._deserialize_json_fields(item, ["ingredients"])["ingredients"]
            )
            favorites.append(item)
        return favorites, total


# Singleton instance
favorite_repository = FavoriteRepository()
