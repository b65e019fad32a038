"""SQLAlchemy models for shops, customers, wishlists and activity events."""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.types import CHAR, TypeDecorator

# Placeholder credential for shops created on first storefront contact
PLACEHOLDER_ACCESS_TOKEN = "placeholder"

# Largest upstream id a BigInteger column holds
MAX_PLATFORM_ID = 2**63 - 1


class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as CHAR(32).
    """

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == "postgresql":
            return value
        else:
            if isinstance(value, uuid.UUID):
                return value.hex
            else:
                return uuid.UUID(value).hex

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Shop(Base):
    """Merchant store (tenant)."""

    __tablename__ = "shops"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    domain = Column(String(255), unique=True, nullable=False)
    access_token = Column(Text, nullable=False)  # Encrypted, or placeholder until install
    installed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    customers = relationship("Customer", back_populates="shop", cascade="all, delete-orphan")
    wishlists = relationship("Wishlist", back_populates="shop", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="shop", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Shop {self.domain}>"


class Customer(Base):
    """Storefront customer, scoped to a shop."""

    __tablename__ = "customers"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    shop_customer_id = Column(BigInteger, nullable=False)  # Upstream platform customer id
    email = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("shop_id", "shop_customer_id", name="uq_shop_customer"),
    )

    shop = relationship("Shop", back_populates="customers")
    wishlist = relationship("Wishlist", back_populates="customer", uselist=False)

    def __repr__(self) -> str:
        return f"<Customer {self.shop_customer_id} ({self.email})>"


class Wishlist(Base):
    """Wishlist owned by a customer, or a guest wishlist when customer_id is null."""

    __tablename__ = "wishlists"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(UUID(), ForeignKey("customers.id", ondelete="SET NULL"))
    share_uuid = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # NULL customer_id rows never collide, so guest wishlists are unconstrained
    __table_args__ = (
        UniqueConstraint("shop_id", "customer_id", name="uq_shop_customer_wishlist"),
    )

    shop = relationship("Shop", back_populates="wishlists")
    customer = relationship("Customer", back_populates="wishlist")
    items = relationship(
        "WishlistItem",
        back_populates="wishlist",
        cascade="all, delete-orphan",
        order_by="WishlistItem.created_at",
    )

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None

    def __repr__(self) -> str:
        return f"<Wishlist {self.share_uuid} - {len(self.items)} items>"


class WishlistItem(Base):
    """Product variant saved to a wishlist."""

    __tablename__ = "wishlist_items"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    wishlist_id = Column(UUID(), ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(BigInteger, nullable=False)
    variant_id = Column(BigInteger, nullable=False)
    handle = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Storage-level dedup key; in-code existence checks are advisory only
    __table_args__ = (
        UniqueConstraint("wishlist_id", "product_id", "variant_id", name="uq_wishlist_variant"),
        Index("ix_wishlist_items_product_variant", "product_id", "variant_id"),
    )

    wishlist = relationship("Wishlist", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "productId": str(self.product_id),
            "variantId": str(self.variant_id),
            "handle": self.handle,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<WishlistItem {self.product_id}/{self.variant_id} ({self.handle})>"


class Event(Base):
    """Append-only storefront activity record."""

    __tablename__ = "events"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(), ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(UUID(), ForeignKey("customers.id", ondelete="SET NULL"))
    type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_events_shop_customer_type", "shop_id", "customer_id", "type"),
    )

    shop = relationship("Shop", back_populates="events")

    def __repr__(self) -> str:
        return f"<Event {self.type} at {self.created_at}>"
