"""Authentication for app proxy requests and storefront sessions."""

from .crypto import encrypt_token, decrypt_token
from .identity import Guest, Registered, Identity, resolve_identity, subject_id_for
from .jwt import TokenService, StorefrontClaims, REGISTERED_TOKEN_TTL, GUEST_TOKEN_TTL
from .proxy import (
    ProxyConfig,
    ProxyRequest,
    authenticate_proxy_request,
    compute_proxy_signature,
    resolve_shop_domain,
    verify_proxy_signature,
)

__all__ = [
    "encrypt_token",
    "decrypt_token",
    "Guest",
    "Registered",
    "Identity",
    "resolve_identity",
    "subject_id_for",
    "TokenService",
    "StorefrontClaims",
    "REGISTERED_TOKEN_TTL",
    "GUEST_TOKEN_TTL",
    "ProxyConfig",
    "ProxyRequest",
    "authenticate_proxy_request",
    "compute_proxy_signature",
    "resolve_shop_domain",
    "verify_proxy_signature",
]
