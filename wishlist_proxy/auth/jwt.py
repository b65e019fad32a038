"""Storefront session token signing and verification."""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable

import jwt
from jwt.exceptions import InvalidTokenError

from wishlist_proxy.auth.identity import Identity, Registered, resolve_identity, subject_id_for
from wishlist_proxy.errors import AuthError, ConfigurationError

logger = logging.getLogger(__name__)


# Algorithm for JWT signing
ALGORITHM = "HS256"

TOKEN_KIND = "storefront"

# Token lifetimes in seconds
REGISTERED_TOKEN_TTL = 3600
GUEST_TOKEN_TTL = 86400


@dataclass
class StorefrontClaims:
    """Decoded claims of a verified storefront token."""

    shop: str
    subject_id: str | None
    kind: str
    issued_at: int
    expires_at: int

    @property
    def identity(self) -> Identity:
        return resolve_identity(self.subject_id)


def lifetime_for(identity: Identity) -> int:
    """Full token lifetime for an identity kind."""
    if isinstance(identity, Registered):
        return REGISTERED_TOKEN_TTL
    return GUEST_TOKEN_TTL


class TokenService:
    """Signs and verifies short-lived storefront session tokens.

    Issuance is a pure function of the inputs, the clock and the secret.
    """

    def __init__(self, secret: str, clock: Callable[[], float] = time.time):
        if not secret:
            raise ConfigurationError("JWT signing secret is not configured")
        self._secret = secret
        self._clock = clock

    @classmethod
    def from_env(cls) -> "TokenService":
        """Build a token service from the JWT_SECRET environment variable."""
        secret = os.getenv("JWT_SECRET")
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set")
        return cls(secret)

    def now(self) -> int:
        return int(self._clock())

    def sign(self, shop: str, subject_id: str | None, expires_in: int) -> str:
        """Create a signed token for a shop and (optional) subject.

        Args:
            shop: Shop domain the token is scoped to
            subject_id: ``guest_<key>``, external customer id, or None
            expires_in: Lifetime in seconds

        Returns:
            Encoded JWT token string
        """
        issued_at = self.now()
        payload = {
            "shop": shop,
            "subjectId": subject_id,
            "kind": TOKEN_KIND,
            "iat": issued_at,
            "exp": issued_at + expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def issue(self, shop: str, identity: Identity) -> str:
        """Sign a token for an identity with its kind's full lifetime."""
        return self.sign(shop, subject_id_for(identity), lifetime_for(identity))

    def verify(self, token: str) -> StorefrontClaims:
        """Verify and decode a storefront token.

        Raises:
            AuthError: bad signature, malformed payload, wrong kind or expired
        """
        if not token:
            raise AuthError("Missing session token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except InvalidTokenError as e:
            logger.info("Token verification failed: %s", e)
            raise AuthError("Invalid or expired token") from e

        shop = payload.get("shop")
        subject_id = payload.get("subjectId")
        kind = payload.get("kind")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")

        if not isinstance(shop, str) or not shop:
            raise AuthError("Malformed token payload", detail="shop claim missing")
        if subject_id is not None and not isinstance(subject_id, str):
            raise AuthError("Malformed token payload", detail="subjectId must be a string")
        if kind != TOKEN_KIND:
            raise AuthError("Malformed token payload", detail=f"unexpected kind {kind!r}")
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            raise AuthError("Malformed token payload", detail="timestamps must be integers")

        # Re-check expiry against our own clock, independent of the JWT library
        if expires_at <= self.now():
            raise AuthError("Invalid or expired token", detail="token expired")

        return StorefrontClaims(
            shop=shop,
            subject_id=subject_id,
            kind=kind,
            issued_at=issued_at,
            expires_at=expires_at,
        )
