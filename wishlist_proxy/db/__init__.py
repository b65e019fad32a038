"""Database layer for the wishlist proxy."""

from wishlist_proxy.db.database import get_db, get_db_session, unit_of_work, engine, SessionLocal
from wishlist_proxy.db.models import Base, Shop, Customer, Wishlist, WishlistItem, Event
from wishlist_proxy.db.repository import (
    ShopRepository,
    CustomerRepository,
    WishlistRepository,
    EventRepository,
)
from wishlist_proxy.db.migrations import run_migrations, get_current_revision

__all__ = [
    # Database
    "get_db",
    "get_db_session",
    "unit_of_work",
    "engine",
    "SessionLocal",
    # Models
    "Base",
    "Shop",
    "Customer",
    "Wishlist",
    "WishlistItem",
    "Event",
    # Repositories
    "ShopRepository",
    "CustomerRepository",
    "WishlistRepository",
    "EventRepository",
    # Migrations
    "run_migrations",
    "get_current_revision",
]
