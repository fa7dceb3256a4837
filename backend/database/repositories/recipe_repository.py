"""
Recipe Repository - Handles all recipe-related database operations
"""
from typing import Optional, List, Tuple
from .base_repository import BaseRepository

RECIPE_COLUMNS = """
    r.id, r.name, r.instructions, r.thumbnail, r.ingredients,
    r.posted_at, r.posted_by_id, u.name AS posted_by_name
"""


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input only matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_ingredients(value) -> List[str]:
    """Ingredients are stored as a JSON array; older rows hold a comma separated string"""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(i) for i in value]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


class RecipeRepository(BaseRepository):
    """Repository for recipe operations"""

    JSON_FIELDS = ["ingredients"]

    def __init__(self):
        super().__init__("recipes")

    def _load(self, row, exclude_fields: List[str] = None) -> Optional[dict]:
        result = super()._load(row, exclude_fields)
        if result is not None and "ingredients" in result:
            result["ingredients"] = normalize_ingredients(result["ingredients"])
        return result

    async def find_by_id(self, recipe_id: str) -> Optional[dict]:
        """Find recipe by ID, including the author's display name"""
        rows = await self._fetch(
            "SELECT",
            f"""
            SELECT {RECIPE_COLUMNS}
            FROM recipes r
            JOIN users u ON r.posted_by_id = u.id
            WHERE r.id = $1
            """,
            [recipe_id],
            {"id": recipe_id}
        )
        return self._load(rows[0]) if rows else None

    async def get_owner_id(self, recipe_id: str) -> Optional[str]:
        """Return the id of the user that posted the recipe, or None if it doesn't exist"""
        rows = await self._fetch(
            "SELECT",
            "SELECT posted_by_id FROM recipes WHERE id = $1",
            [recipe_id],
            {"id": recipe_id}
        )
        return rows[0]["posted_by_id"] if rows else None

    async def exists(self, recipe_id: str) -> bool:
        return await self.count({"id": recipe_id}) > 0

    async def create(self, recipe_data: dict) -> dict:
        """Create a new recipe"""
        return await self.insert(recipe_data)

    async def update_fields(self, recipe_id: str, data: dict) -> Optional[dict]:
        """Update only the supplied columns and return the stored row"""
        stored = self._serialize_json_fields(data, self.JSON_FIELDS)

        set_clauses = []
        values = []
        for i, (key, value) in enumerate(stored.items(), 1):
            set_clauses.append(f"{self._quote_identifier(key)} = ${i}")
            values.append(value)
        values.append(recipe_id)

        query = f"""
            UPDATE recipes
            SET {', '.join(set_clauses)}
            WHERE id = ${len(values)}
            RETURNING id, name, instructions, thumbnail, ingredients, posted_at, posted_by_id
        """
        rows = await self._fetch("UPDATE", query, values, {"id": recipe_id})
        return self._load(rows[0]) if rows else None

    async def delete_recipe(self, recipe_id: str) -> int:
        """Delete a recipe; favorites referencing it go with it (ON DELETE CASCADE)"""
        return await self.delete({"id": recipe_id})

    async def list_recipes(
        self,
        search: str = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[dict], int]:
        """List recipes newest first, optionally filtered by a name substring"""
        where_sql = ""
        values = []
        if search:
            where_sql = "WHERE r.name ILIKE $1"
            values.append(f"%{escape_like(search)}%")

        count_rows = await self._fetch(
            "COUNT",
            f"SELECT COUNT(*) AS count FROM recipes r {where_sql}",
            values,
            {"search": search}
        )
        total = count_rows[0]["count"] if count_rows else 0

        param = len(values) + 1
        rows = await self._fetch(
            "SELECT_MANY",
            f"""
            SELECT {RECIPE_COLUMNS}
            FROM recipes r
            JOIN users u ON r.posted_by_id = u.id
            {where_sql}
            ORDER BY r.posted_at DESC
            LIMIT ${param} OFFSET ${param + 1}
            """,
            values + [limit, offset],
            {"search": search, "limit": limit, "offset": offset}
        )
        return [self._load(row) for row in rows], total

    async def find_by_author(
        self,
        author_id: str,
        limit: int = 10,
        offset: int = 0
    ) -> List[dict]:
        """Find recipes posted by a user, newest first"""
        rows = await self._fetch(
            "SELECT_MANY",
            f"""
            SELECT {RECIPE_COLUMNS}
            FROM recipes r
            JOIN users u ON r.posted_by_id = u.id
            WHERE r.posted_by_id = $1
            ORDER BY r.posted_at DESC
            LIMIT $2 OFFSET $3
            """,
            [author_id, limit, offset],
            {"posted_by_id": author_id, "limit": limit, "offset": offset}
        )
        return [self._load(row) for row in rows]

    async def search_by_name(
        self,
        query: str,
        limit: int = 10,
        offset: int = 0
    ) -> List[dict]:
        """Case-insensitive substring match on recipe names, newest first"""
        rows = await self._fetch(
            "SELECT_MANY",
            f"""
            SELECT {RECIPE_COLUMNS}
            FROM recipes r
            JOIN users u ON r.posted_by_id = u.id
            WHERE r.name ILIKE $1
            ORDER BY r.posted_at DESC
            LIMIT $2 OFFSET $3
            """,
            [f"%{escape_like(query)}%", limit, offset],
            {"query": query, "limit": limit, "offset": offset}
        )
        return [self._load(row) for row in rows]

    async def count_all(self) -> int:
        return await self.count()


# Singleton instance
recipe_repository = RecipeRepository()
