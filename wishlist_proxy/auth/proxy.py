"""Verification of requests relayed through the Shopify app proxy."""

import base64
import binascii
import hashlib
import hmac
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from wishlist_proxy.errors import AuthError, ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"
SHOP_DOMAIN_HEADER = "X-Shopify-Shop-Domain"
CUSTOMER_ID_HEADER = "X-Shopify-Customer-Id"

# SHA-256 digest size in bytes
_DIGEST_SIZE = hashlib.sha256().digest_size


@dataclass
class ProxyConfig:
    """Shared secret used by the upstream platform to sign proxy requests."""

    api_secret: str

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        """Load configuration from environment variables."""
        api_secret = os.getenv("SHOPIFY_API_SECRET")
        if not api_secret:
            raise ConfigurationError("SHOPIFY_API_SECRET must be set")
        return cls(api_secret=api_secret)


@dataclass
class ProxyRequest:
    """A proxy request whose signature has been verified."""

    shop: str
    payload: dict[str, Any] = field(default_factory=dict)


def compute_proxy_signature(body: bytes, secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of the raw body."""
    return base64.b64encode(
        hmac.new(secret.encode(), body, hashlib.sha256).digest()
    ).decode()


def verify_proxy_signature(body: bytes, signature: str | None, secret: str) -> None:
    """Verify the upstream signature over the raw, unparsed request body.

    Args:
        body: Raw request body bytes
        signature: X-Shopify-Hmac-Sha256 header value
        secret: Shared secret with the upstream platform

    Raises:
        ConfigurationError: If the secret is empty
        AuthError: If the header is absent, malformed or does not match
    """
    if not secret:
        raise ConfigurationError("Proxy signing secret is not configured")

    if not signature:
        raise AuthError("Missing request signature")

    try:
        provided = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        raise AuthError("Malformed request signature")

    if len(provided) != _DIGEST_SIZE:
        raise AuthError("Malformed request signature")

    expected = hmac.new(secret.encode(), body, hashlib.sha256).digest()

    # Timing-safe comparison
    if not hmac.compare_digest(expected, provided):
        raise AuthError("Invalid request signature")


def resolve_shop_domain(
    headers: Mapping[str, str],
    query_params: Mapping[str, str],
    payload: Mapping[str, Any] | None,
) -> str:
    """Extract the shop scope: header first, then query, then body field.

    Raises:
        ValidationError: If no shop domain is present
    """
    shop = headers.get(SHOP_DOMAIN_HEADER) or query_params.get("shop")
    if not shop and payload:
        value = payload.get("shop")
        shop = value if isinstance(value, str) else None

    if not shop:
        raise ValidationError("Shop domain required")

    return shop.strip().lower()


def authenticate_proxy_request(
    body: bytes,
    headers: Mapping[str, str],
    query_params: Mapping[str, str],
    payload: Mapping[str, Any] | None,
    secret: str,
) -> ProxyRequest:
    """Verify a proxy request and return its shop scope.

    Signature verification happens before anything in the body is trusted.
    """
    verify_proxy_signature(body, headers.get(SIGNATURE_HEADER), secret)
    shop = resolve_shop_domain(headers, query_params, payload)
    return ProxyRequest(shop=shop, payload=dict(payload or {}))
