"""Repository classes for data access.

Repositories flush but never commit; callers wrap each operation in
``unit_of_work`` so multi-step operations stay atomic.
"""

import uuid
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wishlist_proxy.db.models import (
    PLACEHOLDER_ACCESS_TOKEN,
    Customer,
    Event,
    Shop,
    Wishlist,
    WishlistItem,
)
from wishlist_proxy.errors import ConflictError


class ShopRepository:
    """Repository for shop data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_domain(self, domain: str) -> Shop | None:
        """Get shop by domain."""
        return self.db.query(Shop).filter(Shop.domain == domain).first()

    def upsert(self, domain: str, access_token: str | None = None) -> Shop:
        """Get or create a shop by domain.

        Unseen shops get a placeholder credential unless one is supplied.
        A supplied credential replaces the stored one and re-stamps installed_at.
        """
        shop = self.get_by_domain(domain)
        if shop is None:
            try:
                with self.db.begin_nested():
                    shop = Shop(
                        domain=domain,
                        access_token=access_token or PLACEHOLDER_ACCESS_TOKEN,
                        installed_at=datetime.utcnow(),
                    )
                    self.db.add(shop)
                    self.db.flush()
                return shop
            except IntegrityError:
                # Created concurrently; the unique domain constraint decides
                shop = self.get_by_domain(domain)
                if shop is None:
                    raise

        if access_token:
            shop.access_token = access_token
            shop.installed_at = datetime.utcnow()
            self.db.flush()
        return shop


class CustomerRepository:
    """Repository for customer data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_external_id(self, shop_id: UUID, shop_customer_id: int) -> Customer | None:
        """Get customer by the upstream platform's customer id within a shop."""
        return (
            self.db.query(Customer)
            .filter(Customer.shop_id == shop_id, Customer.shop_customer_id == shop_customer_id)
            .first()
        )

    def upsert(self, shop_id: UUID, shop_customer_id: int, email: str | None) -> Customer:
        """Create the customer or update its email on match."""
        customer = self.get_by_external_id(shop_id, shop_customer_id)
        if customer is None:
            try:
                with self.db.begin_nested():
                    customer = Customer(
                        shop_id=shop_id,
                        shop_customer_id=shop_customer_id,
                        email=email,
                    )
                    self.db.add(customer)
                    self.db.flush()
                return customer
            except IntegrityError:
                customer = self.get_by_external_id(shop_id, shop_customer_id)
                if customer is None:
                    raise

        customer.email = email
        self.db.flush()
        return customer


class WishlistRepository:
    """Repository for wishlist and wishlist item data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, id: UUID) -> Wishlist | None:
        """Get wishlist by ID."""
        return self.db.query(Wishlist).filter(Wishlist.id == id).first()

    def get_for_customer(self, shop_id: UUID, customer_id: UUID) -> Wishlist | None:
        """Get the (single) wishlist of a customer."""
        return (
            self.db.query(Wishlist)
            .filter(Wishlist.shop_id == shop_id, Wishlist.customer_id == customer_id)
            .first()
        )

    def get_guest(
        self,
        shop_id: UUID,
        share_uuid: str,
        for_update: bool = False,
    ) -> Wishlist | None:
        """Get a guest wishlist by its share identifier.

        With ``for_update`` the row is locked until the transaction ends.
        """
        query = self.db.query(Wishlist).filter(
            Wishlist.shop_id == shop_id,
            Wishlist.customer_id.is_(None),
            Wishlist.share_uuid == share_uuid,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(
        self,
        shop_id: UUID,
        customer_id: UUID | None = None,
        share_uuid: str | None = None,
    ) -> Wishlist:
        """Create a wishlist. Raises IntegrityError on a uniqueness clash."""
        wishlist = Wishlist(
            shop_id=shop_id,
            customer_id=customer_id,
            share_uuid=share_uuid or str(uuid.uuid4()),
        )
        with self.db.begin_nested():
            self.db.add(wishlist)
            self.db.flush()
        return wishlist

    def get_or_create_for_customer(self, shop_id: UUID, customer_id: UUID) -> Wishlist:
        """Get or create a customer's wishlist, one per (shop, customer)."""
        wishlist = self.get_for_customer(shop_id, customer_id)
        if wishlist is not None:
            return wishlist
        try:
            return self.create(shop_id, customer_id=customer_id)
        except IntegrityError:
            wishlist = self.get_for_customer(shop_id, customer_id)
            if wishlist is None:
                raise
            return wishlist

    def get_or_create_guest(self, shop_id: UUID, share_uuid: str) -> Wishlist:
        """Get or create the guest wishlist keyed by ``share_uuid``."""
        wishlist = self.get_guest(shop_id, share_uuid)
        if wishlist is not None:
            return wishlist
        try:
            return self.create(shop_id, share_uuid=share_uuid)
        except IntegrityError:
            wishlist = self.get_guest(shop_id, share_uuid)
            if wishlist is None:
                # Key already taken by another shop or by a customer wishlist
                raise ConflictError("Guest key unavailable")
            return wishlist

    def delete_guest(self, id: UUID) -> bool:
        """Delete a guest wishlist and its items.

        Returns False when the row was already gone (e.g. migrated by a
        concurrent request), which callers treat as a lost race.
        """
        self.db.query(WishlistItem).filter(WishlistItem.wishlist_id == id).delete(
            synchronize_session=False
        )
        deleted = (
            self.db.query(Wishlist)
            .filter(Wishlist.id == id, Wishlist.customer_id.is_(None))
            .delete(synchronize_session=False)
        )
        self.db.expire_all()
        return deleted == 1

    def get_item(self, id: UUID) -> WishlistItem | None:
        """Get wishlist item by ID."""
        return self.db.query(WishlistItem).filter(WishlistItem.id == id).first()

    def find_item(self, wishlist_id: UUID, product_id: int, variant_id: int) -> WishlistItem | None:
        """Find an item by its (product, variant) dedup key."""
        return (
            self.db.query(WishlistItem)
            .filter(
                WishlistItem.wishlist_id == wishlist_id,
                WishlistItem.product_id == product_id,
                WishlistItem.variant_id == variant_id,
            )
            .first()
        )

    def add_item(self, wishlist_id: UUID, product_id: int, variant_id: int, handle: str) -> WishlistItem:
        """Insert an item; the storage unique constraint is authoritative.

        Raises:
            ConflictError: The (product, variant) pair is already in the wishlist
        """
        item = WishlistItem(
            wishlist_id=wishlist_id,
            product_id=product_id,
            variant_id=variant_id,
            handle=handle,
        )
        try:
            with self.db.begin_nested():
                self.db.add(item)
                self.db.flush()
        except IntegrityError:
            existing = self.find_item(wishlist_id, product_id, variant_id)
            raise ConflictError(
                "Item already in wishlist",
                item=existing.to_dict() if existing else None,
            )
        return item

    def delete_item(self, item: WishlistItem) -> None:
        """Delete a wishlist item."""
        self.db.delete(item)
        self.db.flush()


class EventRepository:
    """Repository for append-only activity events."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        shop_id: UUID,
        type: str,
        payload: dict[str, Any],
        customer_id: UUID | None = None,
    ) -> Event:
        """Append an activity event."""
        event = Event(
            shop_id=shop_id,
            customer_id=customer_id,
            type=type,
            payload=payload,
        )
        self.db.add(event)
        self.db.flush()
        return event
