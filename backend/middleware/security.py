"""
Security Middleware - Security headers and per-request logging
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
import jwt
import logging
import time
from typing import Callable

from config import settings
from utils.debug import log_request, log_response

logger = logging.getLogger(__name__)

UNLOGGED_PATHS = ["/api/health", "/health"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Strict-Transport-Security outside localhost
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if request.url.hostname not in ["localhost", "127.0.0.1", "testserver"]:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every API request with method, path, status, response time and user.
    """

    def _extract_user_id(self, request: Request) -> str:
        """User id from the bearer token, for log lines only (not verified for expiry)"""
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return "anonymous"
        try:
            payload = jwt.decode(
                auth_header[7:],
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"verify_exp": False}
            )
        except jwt.InvalidTokenError:
            return "invalid_token"
        return str(payload.get("sub", "unknown"))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        method = request.method
        path = request.url.path
        user_id = self._extract_user_id(request)

        if path not in UNLOGGED_PATHS:
            query_params = dict(request.query_params) if request.query_params else None
            log_request(method, path, query_params=query_params)

        response = await call_next(request)

        response_time = (time.time() - start_time) * 1000

        if path not in UNLOGGED_PATHS:
            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            short_user_id = user_id[:8] if user_id not in ["anonymous", "unknown", "invalid_token"] else user_id
            logger.log(
                log_level,
                f"{method} {path} - {response.status_code} - {response_time:.2f}ms - user:{short_user_id}"
            )
            log_response(method, path, response.status_code, response_time)

        response.headers["X-Response-Time"] = f"{response_time:.2f}ms"
        return response
