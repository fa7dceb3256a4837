"""
Middleware Package - Security headers and request logging
"""
from .security import (
    SecurityHeadersMiddleware,
    RequestLoggingMiddleware,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestLoggingMiddleware",
]
