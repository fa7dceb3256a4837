"""
PostgreSQL Database Connection Module
Provides async PostgreSQL connection management with asyncpg
"""
import asyncpg
import logging
import time
from typing import Optional

from config import settings
from utils.debug import Loggers

logger = logging.getLogger(__name__)

# Global database connection pool
_pool: Optional[asyncpg.Pool] = None

# SQL Schema
SCHEMA = """
-- Users table; token_version is bumped on login and logout to revoke issued tokens
CREATE TABLE IF NOT EXISTS users (
    id VARCHAR(255) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    email VARCHAR(255) UNIQUE NOT NULL,
    password VARCHAR(255) NOT NULL,
    token_version INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS recipes (
    id VARCHAR(255) PRIMARY KEY,
    name VARCHAR(500) NOT NULL,
    instructions TEXT NOT NULL,
    thumbnail TEXT,
    ingredients TEXT NOT NULL DEFAULT '[]',
    posted_at TIMESTAMP NOT NULL,
    posted_by_id VARCHAR(255) NOT NULL REFERENCES users(id)
);

-- The unique pair is what keeps concurrent add/toggle calls consistent
CREATE TABLE IF NOT EXISTS favorites (
    id VARCHAR(255) PRIMARY KEY,
    user_id VARCHAR(255) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    recipe_id VARCHAR(255) NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
    created_at TIMESTAMP NOT NULL,
    CONSTRAINT favorites_user_recipe_unique UNIQUE (user_id, recipe_id)
);
"""

INDICES = """
CREATE INDEX IF NOT EXISTS idx_recipes_posted_by ON recipes(posted_by_id);
CREATE INDEX IF NOT EXISTS idx_recipes_posted_at ON recipes(posted_at DESC);
CREATE INDEX IF NOT EXISTS idx_recipes_name_lower ON recipes(lower(name));
CREATE INDEX IF NOT EXISTS idx_favorites_user_created ON favorites(user_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_favorites_recipe ON favorites(recipe_id);
"""


async def init_db() -> asyncpg.Pool:
    """Initialize the database connection pool and create tables"""
    global _pool

    start_time = time.time()
    logger.info("Initializing PostgreSQL connection pool")
    # Log without credentials
    Loggers.db.info("Starting database initialization", database_url=settings.database_url.split("@")[-1])

    try:
        _pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=60
        )
        pool_time = (time.time() - start_time) * 1000
        Loggers.db.debug("Connection pool created", duration_ms=f"{pool_time:.2f}",
                         min_size=settings.db_pool_min_size, max_size=settings.db_pool_max_size)
    except Exception as e:
        Loggers.db.error(f"Failed to create connection pool: {e}", exc_info=True)
        raise

    schema_start = time.time()
    async with _pool.acquire() as conn:
        await conn.execute(SCHEMA)
        await conn.execute(INDICES)
    schema_time = (time.time() - schema_start) * 1000
    Loggers.db.debug("Schema and indices created", duration_ms=f"{schema_time:.2f}")

    total_time = (time.time() - start_time) * 1000
    logger.info("Database initialized successfully")
    Loggers.db.info("Database initialization complete", total_duration_ms=f"{total_time:.2f}")

    return _pool


async def get_db() -> asyncpg.Pool:
    """Get the database connection pool"""
    global _pool
    if _pool is None:
        _pool = await init_db()
    return _pool


async def close_db():
    """Close the database connection pool"""
    global _pool
    if _pool is not None:
        Loggers.db.info("Closing database connection pool...")
        await _pool.close()
        _pool = None
        logger.info("Database connection pool closed")


def dict_from_row(row) -> dict:
    """Convert a Record object to a dictionary"""
    if row is None:
        return None
    return dict(row)

