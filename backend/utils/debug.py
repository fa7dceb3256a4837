"""
Debug Utilities - Structured logging helpers shared by the API, database and search layers

All logs are output to stdout/stderr so they show up in container logs.

Environment Variables:
    DEBUG_MODE=true           - Include query parameters and bodies in debug output
    LOG_LEVEL=DEBUG           - Set log level (DEBUG, INFO, WARNING, ERROR)

Usage:
    from utils.debug import Loggers, log_db_query, log_auth_event

    Loggers.favorites.info("Favorite toggled", user_id=user_id, recipe_id=recipe_id)
    log_db_query("SELECT", "recipes", 5.2, rows_affected=1)
"""

import json
import logging
import sys
import os
from typing import Any, Optional, Dict

DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGER_NAMES = [
    'cookbook', 'cookbook.debug', 'cookbook.auth', 'cookbook.db', 'cookbook.api',
    'cookbook.recipes', 'cookbook.favorites', 'cookbook.search',
]


def setup_debug_logging():
    """
    Configure the cookbook.* loggers with a stdout handler.

    Call this early in application startup so every module logs with the same format.
    """
    level = getattr(logging, LOG_LEVEL, logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)

        # Remove existing handlers
        logger.handlers = []

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)

        # Prevent propagation to avoid duplicate logs
        logger.propagate = False

    debug_logger = logging.getLogger("cookbook.debug")
    debug_logger.info(f"Debug logging configured: level={LOG_LEVEL}, debug_mode={DEBUG_MODE}")


def _format_value(value: Any, max_length: int = 200) -> str:
    """Format a value for debug output, truncating if necessary."""
    try:
        if value is None:
            return "None"
        if isinstance(value, (str, int, float, bool)):
            str_val = str(value)
        elif isinstance(value, (dict, list)):
            str_val = json.dumps(value, default=str)
        else:
            str_val = repr(value)

        if len(str_val) > max_length:
            return str_val[:max_length] + "..."
        return str_val
    except Exception:
        return "<unserializable>"


class DebugLogger:
    """
    Logger wrapper that appends key=value context to every message.

    Usage:
        logger = DebugLogger("auth")
        logger.info("Login successful", user_id=123)
        logger.warning("Login failed", reason="invalid_password")
    """

    def __init__(self, module: str):
        self.module = module
        self.logger = logging.getLogger(f"cookbook.{module}")

    def _format_message(self, message: str, **kwargs) -> str:
        if kwargs:
            context_str = " | ".join(f"{k}={_format_value(v)}" for k, v in kwargs.items())
            return f"[{self.module}] {message} | {context_str}"
        return f"[{self.module}] {message}"

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self.logger.error(self._format_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.logger.exception(self._format_message(message, **kwargs))


class Loggers:
    """Pre-configured debug loggers for different application modules."""
    auth = DebugLogger("auth")
    db = DebugLogger("db")
    api = DebugLogger("api")
    recipes = DebugLogger("recipes")
    favorites = DebugLogger("favorites")
    search = DebugLogger("search")


def log_request(method: str, path: str, user_id: Optional[str] = None,
                query_params: Optional[Dict] = None):
    """
    Log an incoming API request.

    Usage:
        log_request("POST", "/api/recipe", user_id="123")
    """
    logger = Loggers.api
    context = {
        "method": method,
        "path": path,
    }
    if user_id:
        context["user_id"] = user_id
    if query_params:
        context["query"] = _format_value(query_params)

    logger.debug("REQUEST", **context)


def log_response(method: str, path: str, status_code: int,
                 duration_ms: float, user_id: Optional[str] = None):
    """
    Log an API response.

    Usage:
        log_response("POST", "/api/recipe", 201, 45.5, user_id="123")
    """
    logger = Loggers.api
    context = {
        "method": method,
        "path": path,
        "status": status_code,
        "duration_ms": f"{duration_ms:.2f}",
    }
    if user_id:
        context["user_id"] = user_id

    if status_code >= 500:
        logger.error("RESPONSE", **context)
    elif status_code >= 400:
        logger.warning("RESPONSE", **context)
    elif duration_ms > 1000:
        logger.warning("RESPONSE (SLOW)", **context)
    else:
        logger.debug("RESPONSE", **context)


def log_db_query(operation: str, table: str, duration_ms: float,
                 rows_affected: Optional[int] = None,
                 query_params: Optional[Dict] = None,
                 error: Optional[str] = None):
    """
    Log a database query with details.

    Usage:
        log_db_query("SELECT", "users", 5.2, rows_affected=1, query_params={"id": "123"})
    """
    logger = Loggers.db
    context = {
        "operation": operation,
        "table": table,
        "duration_ms": f"{duration_ms:.2f}",
    }
    if rows_affected is not None:
        context["rows"] = rows_affected
    if query_params and DEBUG_MODE:
        context["params"] = _format_value(query_params)
    if error:
        context["error"] = error

    if error:
        logger.error("QUERY FAILED", **context)
    elif duration_ms > 100:
        logger.warning("QUERY (SLOW)", **context)
    else:
        logger.debug("QUERY", **context)


def log_auth_event(event: str, user_id: Optional[str] = None,
                   email: Optional[str] = None, success: bool = True,
                   reason: Optional[str] = None):
    """
    Log an authentication event.

    Usage:
        log_auth_event("LOGIN", email="user@example.com", success=True)
        log_auth_event("LOGIN_FAILED", email="user@example.com", success=False, reason="invalid_password")
    """
    logger = Loggers.auth
    context = {"event": event, "success": success}
    if user_id:
        context["user_id"] = user_id
    if email:
        # Mask email for privacy
        if "@" in email:
            parts = email.split("@")
            masked = parts[0][:2] + "***@" + parts[1]
            context["email"] = masked
        else:
            context["email"] = "***"
    if reason:
        context["reason"] = reason

    if success:
        logger.info("AUTH", **context)
    else:
        logger.warning("AUTH", **context)


def log_external_request(service: str, operation: str,
                         status_code: Optional[int] = None,
                         results: Optional[int] = None,
                         duration_ms: Optional[float] = None,
                         error: Optional[str] = None):
    """
    Log a call to a third-party HTTP API.

    Usage:
        log_external_request("forkify", "search_v1", status_code=200, results=28, duration_ms=320)
    """
    logger = Loggers.search
    context = {
        "service": service,
        "operation": operation,
    }
    if status_code is not None:
        context["status"] = status_code
    if results is not None:
        context["results"] = results
    if duration_ms is not None:
        context["duration_ms"] = f"{duration_ms:.2f}"
    if error:
        context["error"] = error

    if error:
        logger.warning("EXTERNAL_REQUEST", **context)
    elif duration_ms and duration_ms > 2000:
        logger.warning("EXTERNAL_REQUEST (SLOW)", **context)
    else:
        logger.info("EXTERNAL_REQUEST", **context)
