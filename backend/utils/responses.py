"""
Response envelope helpers - every endpoint answers with
{"status": "success" | "error", "message"?, "data"?}
"""
import math
from typing import Any, Optional


def success_response(data: Optional[dict] = None, message: Optional[str] = None) -> dict:
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(message: str, code: Optional[str] = None, **extra: Any) -> dict:
    body = {"status": "error", "message": message}
    if code:
        body["code"] = code
    body.update({k: v for k, v in extra.items() if v})
    return body


def pagination_meta(page: int, limit: int, total: int) -> dict:
    """Pagination block returned alongside list results."""
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalCount": total,
        "limit": limit,
    }
