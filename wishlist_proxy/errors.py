"""Domain errors raised by the storefront identity and wishlist services.

Each error carries the HTTP status and machine-readable code it maps to, so
route handlers can turn any of them into a consistent error response.
"""

from typing import Any


class WishlistError(Exception):
    """Base class for all storefront wishlist errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(WishlistError):
    """A required secret or setting is missing."""

    status_code = 500
    code = "CONFIGURATION_ERROR"


class AuthError(WishlistError):
    """Bad upstream signature or bad/expired session token."""

    status_code = 401
    code = "AUTH_REQUIRED"


class ValidationError(WishlistError):
    """Malformed input or wrong identity kind for the operation."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(WishlistError):
    """Unknown shop, customer or item."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(WishlistError):
    """Duplicate wishlist item.

    The already stored item is attached so callers can treat the add as
    idempotent.
    """

    status_code = 409
    code = "CONFLICT"

    def __init__(
        self,
        message: str,
        item: dict[str, Any] | None = None,
        detail: str | None = None,
    ):
        super().__init__(message, detail=detail)
        self.item = item


class ForbiddenError(WishlistError):
    """Cross-tenant or cross-owner access."""

    status_code = 403
    code = "ACCESS_DENIED"


class InternalError(WishlistError):
    """Unexpected storage or runtime failure."""

    status_code = 500
    code = "INTERNAL_ERROR"
