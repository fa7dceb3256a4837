"""
Dependencies module for FastAPI application
Provides authentication, pagination, database repositories and the shared HTTP client
"""
from dataclasses import dataclass
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from config import settings
import jwt
import bcrypt
import httpx
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from utils.debug import log_auth_event
from utils.errors import UnauthorizedError, InvalidTokenError

from database.repositories.user_repository import user_repository
from database.repositories.recipe_repository import recipe_repository

logger = logging.getLogger(__name__)

# Missing credentials are reported by get_current_user, not by HTTPBearer
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


def create_token(user_id: str, token_version: int) -> str:
    """Issue a bearer token bound to the user's current token version"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "ver": token_version,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days)
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Verify signature and expiry; raises InvalidTokenError"""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "ver", "exp"]}
        )
    except jwt.ExpiredSignatureError:
        log_auth_event("TOKEN_REJECTED", success=False, reason="expired")
        raise InvalidTokenError("Token expired")
    except jwt.InvalidTokenError as e:
        log_auth_event("TOKEN_REJECTED", success=False, reason=type(e).__name__)
        raise InvalidTokenError("Invalid token")

    if not isinstance(payload.get("sub"), str) or not isinstance(payload.get("ver"), int):
        log_auth_event("TOKEN_REJECTED", success=False, reason="malformed_claims")
        raise InvalidTokenError("Invalid token")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """Resolve the bearer credential to a user record (id, name, email).

    The token's embedded version must equal the user's stored token_version,
    so a later login or a logout revokes it before it expires.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    payload = decode_token(credentials.credentials)

    user = await user_repository.find_by_id(payload["sub"])
    if not user:
        log_auth_event("TOKEN_REJECTED", user_id=payload["sub"], success=False, reason="user_not_found")
        raise InvalidTokenError("Invalid token")

    if user.get("token_version") != payload["ver"]:
        log_auth_event("TOKEN_REJECTED", user_id=user["id"], success=False, reason="revoked")
        raise InvalidTokenError("Token has been revoked")

    return {
        "id": user["id"],
        "name": user["name"],
        "email": user["email"],
        "created_at": user.get("created_at"),
    }


@dataclass
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(None, ge=1, description="Page size (clamped to MAX_PAGE_LIMIT)")
) -> Pagination:
    if limit is None:
        limit = settings.default_page_limit
    return Pagination(page=page, limit=min(limit, settings.max_page_limit))


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared client created in the application lifespan"""
    return request.app.state.http_client
