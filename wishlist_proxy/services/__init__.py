"""Business operations for storefront sessions and wishlists."""

from wishlist_proxy.services.merge import MigrationResult, WishlistMergeEngine
from wishlist_proxy.services.sessions import (
    CustomerSession,
    ExternalCustomer,
    GuestSession,
    RefreshedSession,
    SessionManager,
    ValidatedSession,
)
from wishlist_proxy.services.wishlist import WishlistService, WishlistView

__all__ = [
    "MigrationResult",
    "WishlistMergeEngine",
    "CustomerSession",
    "ExternalCustomer",
    "GuestSession",
    "RefreshedSession",
    "SessionManager",
    "ValidatedSession",
    "WishlistService",
    "WishlistView",
]
