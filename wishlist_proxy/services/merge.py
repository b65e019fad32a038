"""Folding a guest wishlist into a registered customer's wishlist on login."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wishlist_proxy.auth.identity import Guest, Identity, Registered, guest_key_from
from wishlist_proxy.db.database import unit_of_work
from wishlist_proxy.db.models import Customer, Shop
from wishlist_proxy.db.repository import WishlistRepository
from wishlist_proxy.errors import (
    AuthError,
    ConflictError,
    InternalError,
    ValidationError,
    WishlistError,
)
from wishlist_proxy.services.sessions import SessionManager
from wishlist_proxy.services.wishlist import require_customer, require_shop

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Outcome of a guest wishlist migration."""

    migrated: bool
    migrated_count: int
    guest_key: str
    token: str

    @property
    def message(self) -> str:
        if not self.migrated:
            return "No guest wishlist to migrate"
        return f"Migrated {self.migrated_count} items to your account"


class _GuestWishlistGone(Exception):
    """The guest wishlist was deleted by a concurrent migration."""


class WishlistMergeEngine:
    """Migrates a guest wishlist into a customer wishlist exactly once."""

    def __init__(self, db: Session, sessions: SessionManager):
        self.db = db
        self.sessions = sessions
        self.wishlists = WishlistRepository(db)

    def guest_key_for(self, shop_domain: str, guest_token: str) -> str:
        """Extract the guest key from a signed guest token or a bare identifier."""
        value = guest_token.strip()

        if value.count(".") == 2:
            try:
                claims = self.sessions.tokens.verify(value)
            except AuthError:
                raise ValidationError("Invalid guest token")
            if claims.shop != shop_domain:
                raise ValidationError("Guest token belongs to a different shop")
            identity = claims.identity
            if not isinstance(identity, Guest) or identity.key is None:
                raise ValidationError("Guest token does not reference a guest wishlist")
            return identity.key

        key = guest_key_from(value)
        if not key:
            raise ValidationError("Guest token required")
        return key

    def migrate(self, shop_domain: str, identity: Identity, guest_token: str | None) -> MigrationResult:
        """Fold the guest wishlist's items into the caller's wishlist.

        Missing or empty guest wishlists are a successful no-op, so calling
        this twice is always safe.
        """
        if not guest_token:
            raise ValidationError("Guest token required")
        if not isinstance(identity, Registered):
            raise ValidationError("Must be registered to migrate wishlist")

        guest_key = self.guest_key_for(shop_domain, guest_token)

        try:
            with unit_of_work(self.db):
                shop = require_shop(self.db, shop_domain)
                customer = require_customer(self.db, shop, identity)
                migrated, migrated_count = self._fold(shop, customer, guest_key)
        except _GuestWishlistGone:
            logger.info("Guest wishlist %s already migrated by a concurrent request", guest_key)
            migrated, migrated_count = False, 0
        except WishlistError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Error migrating guest wishlist %s for shop %s", guest_key, shop_domain)
            raise InternalError("Could not migrate wishlist") from e

        if migrated:
            self.sessions.log_activity(
                shop_domain,
                identity.external_id,
                "migrate",
                {"migratedCount": migrated_count, "guestId": guest_key},
            )
            logger.info(
                "Migrated %d items from guest %s to customer %s (shop=%s)",
                migrated_count,
                guest_key,
                identity.external_id,
                shop_domain,
            )

        return MigrationResult(
            migrated=migrated,
            migrated_count=migrated_count,
            guest_key=guest_key,
            token=self.sessions.issue_token(shop_domain, identity),
        )

    def _fold(self, shop: Shop, customer: Customer, guest_key: str) -> tuple[bool, int]:
        """Copy guest items into the customer wishlist, then delete the guest wishlist.

        Runs inside the caller's transaction; the guest row is locked so
        concurrent migrations of the same key serialize.
        """
        guest = self.wishlists.get_guest(shop.id, guest_key, for_update=True)
        if guest is None or not guest.items:
            return False, 0

        target = self.wishlists.get_or_create_for_customer(shop.id, customer.id)
        guest_items = [(item.product_id, item.variant_id, item.handle) for item in guest.items]

        migrated_count = 0
        for product_id, variant_id, handle in guest_items:
            if self.wishlists.find_item(target.id, product_id, variant_id) is not None:
                continue
            try:
                self.wishlists.add_item(target.id, product_id, variant_id, handle)
            except ConflictError:
                raise ConflictError("Wishlist changed during migration, please retry")
            migrated_count += 1

        # Skipped duplicates are already represented in the target
        if not self.wishlists.delete_guest(guest.id):
            raise _GuestWishlistGone()

        return True, migrated_count
