"""
Standardized Error Responses - Consistent error handling across the API

Every error is rendered by the handlers in server.py as:
{
    "status": "error",
    "message": "Human-readable message",
    "code": "ERROR_CODE"
}
details stay server-side for logging.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error carrying a machine-readable code next to the message."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}

        super().__init__(status_code=status_code, detail=message)


# ============================================================================
# Authentication & Authorization Errors (401, 403)
# ============================================================================

class UnauthorizedError(APIError):
    """User is not authenticated"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="UNAUTHORIZED",
            message=message
        )


class InvalidCredentialsError(APIError):
    """Invalid email or password"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="INVALID_CREDENTIALS",
            message=message
        )


class InvalidTokenError(APIError):
    """JWT token is invalid, expired or revoked"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="INVALID_TOKEN",
            message=message
        )


class ForbiddenError(APIError):
    """User doesn't have permission"""

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code="FORBIDDEN",
            message=message
        )


# ============================================================================
# Resource Errors (404, 400)
# ============================================================================

class NotFoundError(APIError):
    """Resource not found"""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=f"{resource} not found",
            details={"resource": resource, "identifier": identifier}
        )


class AlreadyExistsError(APIError):
    """Resource already exists (duplicate email, duplicate favorite)"""

    def __init__(self, message: str, resource: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="ALREADY_EXISTS",
            message=message,
            details={"resource": resource}
        )


# ============================================================================
# Validation Errors (400)
# ============================================================================

class InvalidInputError(APIError):
    """Invalid input that is not tied to one field"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_INPUT",
            message=message,
            details=details
        )


# ============================================================================
# Server Errors (500, 503)
# ============================================================================

class DatabaseError(APIError):
    """Database operation failed"""

    def __init__(self, operation: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="DATABASE_ERROR",
            message=f"Failed to {operation}"
        )


class ServiceUnavailableError(APIError):
    """A third-party service is temporarily unavailable"""

    def __init__(self, service: str):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="SERVICE_UNAVAILABLE",
            message=f"{service} is temporarily unavailable. Please try again later.",
            details={"service": service}
        )


# ============================================================================
# Non-HTTP errors
# ============================================================================

class ExternalSearchError(Exception):
    """The external recipe API could not be reached or answered badly.

    Never rendered as a response: the search aggregator catches it and
    falls back to local results.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


# ============================================================================
# Helper Functions
# ============================================================================

def handle_database_error(error: Exception, operation: str):
    """
    Handle database errors with appropriate logging and response.

    Args:
        error: The caught exception
        operation: Description of the operation that failed, e.g. "add to favorites"

    Raises:
        DatabaseError: With sanitized error message
    """
    logger.error(f"Database error during {operation}: {str(error)}", exc_info=True)
    raise DatabaseError(operation) from error
