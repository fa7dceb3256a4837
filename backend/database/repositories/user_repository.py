"""
User Repository - Handles all user-related database operations
"""
from typing import Optional
from .base_repository import BaseRepository


class UserRepository(BaseRepository):
    """Repository for user operations"""

    def __init__(self):
        super().__init__("users")

    async def find_by_id(self, user_id: str, exclude_password: bool = True) -> Optional[dict]:
        """Find user by ID"""
        exclude = ["password"] if exclude_password else None
        return await self.find_one({"id": user_id}, exclude_fields=exclude)

    async def find_by_email(self, email: str, include_password: bool = False) -> Optional[dict]:
        """Find user by email"""
        exclude = None if include_password else ["password"]
        return await self.find_one({"email": email}, exclude_fields=exclude)

    async def email_exists(self, email: str) -> bool:
        return await self.count({"email": email}) > 0

    async def create(self, user_data: dict) -> dict:
        """Create a new user"""
        return await self.insert(user_data)

    async def bump_token_version(self, user_id: str) -> Optional[int]:
        """Increment the user's token version, revoking every token issued so far.

        Returns the new version, or None when the user does not exist.
        """
        rows = await self._fetch(
            "UPDATE",
            "UPDATE users SET token_version = token_version + 1 WHERE id = $1 RETURNING token_version",
            [user_id],
            {"id": user_id}
        )
        return rows[0]["token_version"] if rows else None


# Singleton instance
user_repository = UserRepository()
