"""Wishlist read, add and remove operations for storefront callers."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wishlist_proxy.auth.identity import Guest, Identity, Registered, subject_id_for
from wishlist_proxy.db.database import unit_of_work
from wishlist_proxy.db.models import MAX_PLATFORM_ID, Customer, Shop, Wishlist, WishlistItem
from wishlist_proxy.db.repository import CustomerRepository, ShopRepository, WishlistRepository
from wishlist_proxy.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    WishlistError,
)
from wishlist_proxy.services.sessions import SessionManager, generate_guest_key

logger = logging.getLogger(__name__)


@dataclass
class WishlistView:
    """Serialized wishlist plus the identity it was resolved for."""

    id: str
    share_uuid: str
    items: list[dict]
    identity: Identity


def require_shop(db: Session, domain: str) -> Shop:
    shop = ShopRepository(db).get_by_domain(domain)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


def require_customer(db: Session, shop: Shop, identity: Registered) -> Customer:
    customer = None
    try:
        shop_customer_id = int(identity.external_id)
    except ValueError:
        shop_customer_id = None
    if shop_customer_id is not None and 0 < shop_customer_id <= MAX_PLATFORM_ID:
        customer = CustomerRepository(db).get_by_external_id(shop.id, shop_customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


class WishlistService:
    """Wishlist operations scoped to a verified shop and resolved identity."""

    def __init__(self, db: Session, sessions: SessionManager):
        self.db = db
        self.sessions = sessions
        self.wishlists = WishlistRepository(db)

    def _resolve_wishlist(self, shop: Shop, identity: Identity) -> tuple[Wishlist, Identity]:
        """Find or create the caller's wishlist.

        An anonymous guest gets a freshly minted key, which is returned in
        the identity so the response token links the new wishlist.
        """
        if isinstance(identity, Registered):
            customer = require_customer(self.db, shop, identity)
            return self.wishlists.get_or_create_for_customer(shop.id, customer.id), identity

        if identity.key is None:
            identity = Guest(key=generate_guest_key())
        return self.wishlists.get_or_create_guest(shop.id, identity.key), identity

    def get_wishlist(self, shop_domain: str, identity: Identity) -> WishlistView:
        """Return the caller's wishlist, creating an empty one on first fetch."""
        try:
            with unit_of_work(self.db):
                shop = require_shop(self.db, shop_domain)
                wishlist, identity = self._resolve_wishlist(shop, identity)
                view = WishlistView(
                    id=str(wishlist.id),
                    share_uuid=wishlist.share_uuid,
                    items=[item.to_dict() for item in wishlist.items],
                    identity=identity,
                )
        except WishlistError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Error fetching wishlist for shop %s", shop_domain)
            raise InternalError("Could not load wishlist") from e
        return view

    def add_item(
        self,
        shop_domain: str,
        identity: Identity,
        product_id: int,
        variant_id: int,
        handle: str,
    ) -> tuple[dict, Identity]:
        """Add a (product, variant) to the caller's wishlist.

        Raises:
            ConflictError: The pair is already saved; carries the existing item
        """
        try:
            with unit_of_work(self.db):
                shop = require_shop(self.db, shop_domain)
                wishlist, identity = self._resolve_wishlist(shop, identity)

                existing = self.wishlists.find_item(wishlist.id, product_id, variant_id)
                if existing is not None:
                    raise ConflictError("Item already in wishlist", item=existing.to_dict())

                item = self.wishlists.add_item(wishlist.id, product_id, variant_id, handle)
                item_data = item.to_dict()
        except WishlistError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Error adding item to wishlist for shop %s", shop_domain)
            raise InternalError("Could not add item") from e

        self.sessions.log_activity(
            shop_domain,
            subject_id_for(identity),
            "add",
            {
                "productId": str(product_id),
                "variantId": str(variant_id),
                "handle": handle,
                "isGuest": identity.is_guest,
            },
        )
        return item_data, identity

    def _check_owner(self, shop: Shop, identity: Identity, wishlist: Wishlist) -> None:
        if wishlist.shop_id != shop.id:
            raise ForbiddenError("Access denied")

        if isinstance(identity, Registered):
            try:
                customer = require_customer(self.db, shop, identity)
            except NotFoundError:
                raise ForbiddenError("Access denied")
            if wishlist.customer_id != customer.id:
                raise ForbiddenError("Access denied")
        elif wishlist.customer_id is not None or wishlist.share_uuid != identity.key:
            raise ForbiddenError("Access denied")

    def remove_item(self, shop_domain: str, identity: Identity, item_id: str) -> None:
        """Delete an item the caller owns."""
        try:
            parsed_id = UUID(item_id)
        except ValueError:
            raise NotFoundError("Item not found")

        try:
            with unit_of_work(self.db):
                shop = require_shop(self.db, shop_domain)
                item: WishlistItem | None = self.wishlists.get_item(parsed_id)
                if item is None:
                    raise NotFoundError("Item not found")

                self._check_owner(shop, identity, item.wishlist)

                payload = {
                    "productId": str(item.product_id),
                    "variantId": str(item.variant_id),
                    "handle": item.handle,
                    "isGuest": identity.is_guest,
                }
                self.wishlists.delete_item(item)
        except WishlistError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Error removing wishlist item %s for shop %s", item_id, shop_domain)
            raise InternalError("Could not remove item") from e

        self.sessions.log_activity(shop_domain, subject_id_for(identity), "remove", payload)
