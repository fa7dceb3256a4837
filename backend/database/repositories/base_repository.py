"""
Base Repository with common database operations
"""
import json
import asyncpg
import time
import logging
from datetime import datetime, timezone
from typing import Optional, List, Any, Dict
from ..connection import get_db, dict_from_row
from utils.debug import log_db_query

logger = logging.getLogger(__name__)


def parse_rowcount(status: str) -> int:
    """Parse rowcount from an asyncpg status string (e.g. "DELETE 1")"""
    try:
        return int(status.split()[-1]) if status else 0
    except ValueError:
        return 0


class BaseRepository:
    """Base class for all repositories with common CRUD operations"""

    JSON_FIELDS: List[str] = []
    TIMESTAMP_FIELDS: List[str] = ["created_at", "posted_at"]

    def __init__(self, table_name: str):
        self.table_name = table_name

    def _quote_identifier(self, identifier: str) -> str:
        """Quote a column identifier for PostgreSQL"""
        return '"' + identifier.replace('"', '""') + '"'

    async def _get_db(self) -> asyncpg.Pool:
        return await get_db()

    def _serialize_json_fields(self, data: dict, json_fields: List[str]) -> dict:
        """Serialize JSON fields to strings"""
        result = data.copy()
        for field in json_fields:
            if field in result and result[field] is not None:
                if not isinstance(result[field], str):
                    result[field] = json.dumps(result[field])
        return result

    def _deserialize_json_fields(self, data: dict, json_fields: List[str]) -> dict:
        """Deserialize JSON strings to objects"""
        if data is None:
            return None
        result = data.copy()
        for field in json_fields:
            if field in result and result[field] is not None:
                if isinstance(result[field], str):
                    try:
                        result[field] = json.loads(result[field])
                    except json.JSONDecodeError:
                        pass
        return result

    def _convert_datetime_strings(self, data: dict) -> dict:
        """Convert ISO datetime strings and aware datetimes in TIMESTAMP_FIELDS to naive UTC.

        PostgreSQL TIMESTAMP columns (without timezone) expect naive datetime objects.
        Text columns are never touched, whatever their content looks like.
        """
        result = data.copy()
        for key, value in result.items():
            if key not in self.TIMESTAMP_FIELDS:
                continue
            if isinstance(value, str) and len(value) >= 19:
                # Format: 2026-01-19T16:33:22.599811+00:00 or 2026-01-19T16:33:22
                if 'T' in value and value[4] == '-' and value[7] == '-':
                    try:
                        dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
                        if dt.tzinfo is not None:
                            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
                        result[key] = dt
                    except (ValueError, TypeError):
                        pass
            elif isinstance(value, datetime):
                if value.tzinfo is not None:
                    result[key] = value.astimezone(timezone.utc).replace(tzinfo=None)
        return result

    def _build_where(self, conditions: Optional[Dict[str, Any]], start: int = 1) -> tuple:
        """Build a parameterized WHERE clause from column = value conditions.

        Returns (sql, values, next_param_index).
        """
        if not conditions:
            return "", [], start

        clauses = []
        values = []
        param = start
        for key, value in conditions.items():
            clauses.append(f"{self._quote_identifier(key)} = ${param}")
            values.append(value)
            param += 1

        return " WHERE " + " AND ".join(clauses), values, param

    def _load(self, row, exclude_fields: List[str] = None) -> Optional[dict]:
        """Record -> dict with excluded fields dropped and JSON fields decoded"""
        result = dict_from_row(row)
        if result is None:
            return None
        for field in exclude_fields or []:
            result.pop(field, None)
        if self.JSON_FIELDS:
            result = self._deserialize_json_fields(result, self.JSON_FIELDS)
        return result

    async def _fetch(self, operation: str, query: str, values: List[Any],
                     params_for_log: Optional[dict] = None) -> List[asyncpg.Record]:
        """Run a row-returning query with timing and query logging"""
        start_time = time.time()
        pool = await self._get_db()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(query, *values)
        except Exception as e:
            log_db_query(operation, self.table_name, (time.time() - start_time) * 1000, error=str(e))
            raise
        log_db_query(operation, self.table_name, (time.time() - start_time) * 1000,
                     rows_affected=len(rows), query_params=params_for_log)
        return rows

    async def _execute(self, operation: str, query: str, values: List[Any],
                       params_for_log: Optional[dict] = None) -> int:
        """Run a statement with timing and query logging, returning the rowcount"""
        start_time = time.time()
        pool = await self._get_db()
        try:
            async with pool.acquire() as conn:
                status = await conn.execute(query, *values)
        except Exception as e:
            log_db_query(operation, self.table_name, (time.time() - start_time) * 1000, error=str(e))
            raise
        rowcount = parse_rowcount(status)
        log_db_query(operation, self.table_name, (time.time() - start_time) * 1000,
                     rows_affected=rowcount, query_params=params_for_log)
        return rowcount

    async def find_one(
        self,
        conditions: Dict[str, Any],
        exclude_fields: List[str] = None
    ) -> Optional[dict]:
        """Find a single record matching conditions"""
        where_sql, values, _ = self._build_where(conditions)
        query = f"SELECT * FROM {self.table_name}{where_sql} LIMIT 1"
        rows = await self._fetch("SELECT", query, values, conditions)
        if not rows:
            return None
        return self._load(rows[0], exclude_fields)

    async def insert(self, data: dict) -> dict:
        """Insert a new record"""
        data = self._convert_datetime_strings(data)
        stored = self._serialize_json_fields(data, self.JSON_FIELDS)

        columns = ", ".join(self._quote_identifier(k) for k in stored.keys())
        placeholders = ", ".join(f"${i + 1}" for i in range(len(stored)))
        query = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})"

        await self._execute("INSERT", query, list(stored.values()), {"id": data.get("id")})
        return data

    async def delete(self, conditions: Dict[str, Any]) -> int:
        """Delete records matching conditions"""
        where_sql, values, _ = self._build_where(conditions)
        query = f"DELETE FROM {self.table_name}{where_sql}"
        return await self._execute("DELETE", query, values, conditions)

    async def count(self, conditions: Dict[str, Any] = None) -> int:
        """Count records matching conditions"""
        where_sql, values, _ = self._build_where(conditions)
        query = f"SELECT COUNT(*) AS count FROM {self.table_name}{where_sql}"
        rows = await self._fetch("COUNT", query, values, conditions)
        return rows[0]["count"] if rows else 0
