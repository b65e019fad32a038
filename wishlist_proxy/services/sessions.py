"""Storefront session management: shop/customer upsert, tokens, activity."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wishlist_proxy.auth.crypto import decrypt_token, encrypt_token
from wishlist_proxy.auth.identity import Guest, Identity, Registered, guest_key_from, resolve_identity
from wishlist_proxy.auth.jwt import GUEST_TOKEN_TTL, REGISTERED_TOKEN_TTL, TokenService, lifetime_for
from wishlist_proxy.db.database import unit_of_work
from wishlist_proxy.db.models import MAX_PLATFORM_ID, Customer, Shop
from wishlist_proxy.db.repository import CustomerRepository, EventRepository, ShopRepository
from wishlist_proxy.errors import AuthError, InternalError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ExternalCustomer:
    """Customer data as supplied by the upstream platform."""

    id: int
    email: str | None = None

    @classmethod
    def from_payload(cls, data: Any) -> "ExternalCustomer":
        """Parse ``{"id": ..., "email": ...}``; the id must be numeric."""
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise ValidationError("Customer id required")
        try:
            customer_id = int(str(data["id"]))
        except ValueError:
            raise ValidationError("Customer id must be numeric")
        if not 0 < customer_id <= MAX_PLATFORM_ID:
            raise ValidationError("Customer id out of range")
        email = data.get("email")
        return cls(id=customer_id, email=email if isinstance(email, str) else None)


@dataclass
class CustomerSession:
    """Result of a registered-customer session creation."""

    customer_id: str
    shop_customer_id: str
    email: str | None
    token: str
    expires_in: int = REGISTERED_TOKEN_TTL


@dataclass
class GuestSession:
    """Result of a guest session creation."""

    guest_id: str
    token: str
    expires_in: int = GUEST_TOKEN_TTL


@dataclass
class ValidatedSession:
    """A verified session bound to the caller's shop."""

    shop: str
    subject_id: str | None
    kind: str
    expires_at: datetime

    @property
    def identity(self) -> Identity:
        return resolve_identity(self.subject_id)


@dataclass
class RefreshedSession:
    """A reissued token for an existing session."""

    token: str
    expires_in: int
    subject_id: str | None


def generate_guest_key() -> str:
    """Collision-resistant guest key (122 random bits)."""
    return uuid.uuid4().hex


class SessionManager:
    """Session issuance, refresh and best-effort activity recording."""

    def __init__(self, db: Session, tokens: TokenService):
        self.db = db
        self.tokens = tokens

    def create_customer_session(self, shop: str, external_customer: ExternalCustomer) -> CustomerSession:
        """Upsert shop and customer, then issue a registered-kind token.

        Repeated calls converge on the same customer row.
        """
        try:
            with unit_of_work(self.db):
                shop_record = ShopRepository(self.db).upsert(shop)
                customer = CustomerRepository(self.db).upsert(
                    shop_record.id,
                    external_customer.id,
                    external_customer.email,
                )
                result = CustomerSession(
                    customer_id=str(customer.id),
                    shop_customer_id=str(customer.shop_customer_id),
                    email=customer.email,
                    token="",
                )
        except SQLAlchemyError as e:
            logger.exception("Error creating customer session for shop %s", shop)
            raise InternalError("Could not create customer session") from e

        identity = Registered(external_id=str(external_customer.id))
        result.token = self.tokens.issue(shop, identity)
        logger.info("Customer session created (shop=%s, customer=%s)", shop, external_customer.id)
        return result

    def create_guest_session(self, shop: str, guest_key: str | None = None) -> GuestSession:
        """Upsert shop and issue a guest-kind token, minting a key if needed."""
        key = guest_key_from(guest_key) if guest_key else generate_guest_key()

        try:
            with unit_of_work(self.db):
                ShopRepository(self.db).upsert(shop)
        except SQLAlchemyError as e:
            logger.exception("Error creating guest session for shop %s", shop)
            raise InternalError("Could not create guest session") from e

        token = self.tokens.issue(shop, Guest(key=key))
        return GuestSession(guest_id=key, token=token)

    def validate_session(self, token: str, shop: str) -> ValidatedSession | None:
        """Verify a token for the caller's shop; None when invalid or cross-shop."""
        try:
            claims = self.tokens.verify(token)
        except AuthError as e:
            logger.debug("Session rejected: %s", e)
            return None

        if claims.shop != shop:
            logger.warning("Token for shop %s presented to shop %s", claims.shop, shop)
            return None

        return ValidatedSession(
            shop=claims.shop,
            subject_id=claims.subject_id,
            kind=claims.kind,
            expires_at=datetime.fromtimestamp(claims.expires_at, tz=timezone.utc),
        )

    def refresh_session(self, token: str, shop: str) -> RefreshedSession | None:
        """Reissue a valid token with a fresh full-length window."""
        session = self.validate_session(token, shop)
        if session is None:
            return None

        identity = session.identity
        return RefreshedSession(
            token=self.tokens.issue(shop, identity),
            expires_in=lifetime_for(identity),
            subject_id=session.subject_id,
        )

    def issue_token(self, shop: str, identity: Identity) -> str:
        """Fresh token for the current identity, attached to every response."""
        return self.tokens.issue(shop, identity)

    def get_customer(self, shop: str, external_id: str) -> Customer | None:
        """Look up a customer by shop domain and external id."""
        shop_record = ShopRepository(self.db).get_by_domain(shop)
        if shop_record is None:
            return None
        try:
            shop_customer_id = int(external_id)
        except ValueError:
            return None
        return CustomerRepository(self.db).get_by_external_id(shop_record.id, shop_customer_id)

    def install_shop(self, shop: str, access_token: str) -> Shop:
        """Store the shop's real access credential, replacing the placeholder."""
        if not access_token:
            raise ValidationError("Access token required")
        try:
            with unit_of_work(self.db):
                shop_record = ShopRepository(self.db).upsert(shop, access_token=encrypt_token(access_token))
        except SQLAlchemyError as e:
            logger.exception("Error installing shop %s", shop)
            raise InternalError("Could not store shop credentials") from e
        logger.info("Shop credentials stored for %s", shop)
        return shop_record

    def get_shop_access_token(self, shop: str) -> str | None:
        """Decrypted access credential, or None for unknown/placeholder shops."""
        shop_record = ShopRepository(self.db).get_by_domain(shop)
        if shop_record is None:
            raise NotFoundError("Shop not found")
        return decrypt_token(shop_record.access_token)

    def log_activity(
        self,
        shop: str,
        subject_id: str | None,
        type: str,
        payload: dict[str, Any],
    ) -> None:
        """Append an activity event. Failures are logged, never raised."""
        try:
            with unit_of_work(self.db):
                shop_record = ShopRepository(self.db).get_by_domain(shop)
                if shop_record is None:
                    return

                customer_id = None
                identity = resolve_identity(subject_id)
                if isinstance(identity, Registered):
                    customer = self.get_customer(shop, identity.external_id)
                    customer_id = customer.id if customer else None

                EventRepository(self.db).append(
                    shop_record.id,
                    type,
                    payload,
                    customer_id=customer_id,
                )
        except Exception:
            logger.exception("Error logging %s activity for shop %s", type, shop)
