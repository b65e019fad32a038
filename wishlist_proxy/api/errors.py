"""Error handling utilities for API endpoints."""

import logging
from typing import Any

from fastapi import HTTPException
from pydantic import BaseModel

from wishlist_proxy.errors import ConflictError, WishlistError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Consistent error response format for all API errors."""

    error: str  # User-friendly message
    code: str  # Machine-readable error code
    detail: str | None = None  # Optional technical detail
    item: dict[str, Any] | None = None  # Existing item on duplicate adds


class ErrorCode:
    """Machine-readable error codes."""

    # General errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Auth errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_TOKEN = "INVALID_TOKEN"


def create_error_response(
    status_code: int,
    error: str,
    code: str,
    detail: str | None = None,
    subject_id: str | None = None,
    endpoint: str | None = None,
    exc: Exception | None = None,
    item: dict[str, Any] | None = None,
) -> HTTPException:
    """Build the HTTPException for an API error and log it.

    Server-side failures are logged at error level with the traceback;
    client errors only at warning level.
    """
    log_context = {"error_code": code, "subject_id": subject_id, "endpoint": endpoint}
    level = logging.ERROR if exc and status_code >= 500 else logging.WARNING
    logger.log(
        level,
        "API error: %s (code=%s, subject=%s, endpoint=%s)",
        error,
        code,
        subject_id,
        endpoint,
        exc_info=exc if level == logging.ERROR else None,
        extra=log_context,
    )

    body = ErrorResponse(error=error, code=code, detail=detail, item=item)
    return HTTPException(
        status_code=status_code,
        detail=body.model_dump(exclude_none=True),
    )


def error_from_exception(
    exc: WishlistError,
    endpoint: str | None = None,
    subject_id: str | None = None,
) -> HTTPException:
    """Map a domain error onto its HTTP status and error code."""
    return create_error_response(
        status_code=exc.status_code,
        error=exc.message,
        code=exc.code,
        detail=exc.detail,
        subject_id=subject_id,
        endpoint=endpoint,
        exc=exc.__cause__ or exc,
        item=exc.item if isinstance(exc, ConflictError) else None,
    )
