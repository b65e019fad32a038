"""Shared dependencies for proxy endpoints.

Every request passes through ``verify_proxy_request`` (upstream signature and
shop scope) and then one of the identity dependencies before reaching a handler.
"""

import json
from dataclasses import dataclass, field
from typing import Annotated, Any

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from wishlist_proxy.api.errors import ErrorCode, create_error_response, error_from_exception
from wishlist_proxy.auth.identity import Guest, Identity, resolve_identity
from wishlist_proxy.auth.jwt import TokenService
from wishlist_proxy.auth.proxy import CUSTOMER_ID_HEADER, ProxyConfig, ProxyRequest, authenticate_proxy_request
from wishlist_proxy.db.database import get_db
from wishlist_proxy.errors import AuthError, ConfigurationError, WishlistError
from wishlist_proxy.services.sessions import SessionManager


@dataclass
class ProxyContext:
    """Verified shop scope, resolved caller identity and parsed JSON body."""

    shop: str
    identity: Identity
    payload: dict[str, Any] = field(default_factory=dict)
    token: str | None = None


def get_token_service() -> TokenService:
    """Token service built from configuration."""
    try:
        return TokenService.from_env()
    except ConfigurationError as e:
        raise create_error_response(
            status_code=500,
            error="Server configuration error",
            code=ErrorCode.CONFIGURATION_ERROR,
            endpoint="config",
            exc=e,
        )


def get_session_manager(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> SessionManager:
    return SessionManager(db, tokens)


def _parse_payload(body: bytes) -> dict[str, Any] | None:
    if not body:
        return {}
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


async def verify_proxy_request(request: Request) -> ProxyRequest:
    """Reject requests that were not signed by the upstream platform."""
    try:
        config = ProxyConfig.from_env()
    except ConfigurationError as e:
        raise create_error_response(
            status_code=500,
            error="Server configuration error",
            code=ErrorCode.CONFIGURATION_ERROR,
            endpoint=request.url.path,
            exc=e,
        )

    body = await request.body()
    payload = _parse_payload(body)

    try:
        proxy_request = authenticate_proxy_request(
            body,
            request.headers,
            request.query_params,
            payload,
            config.api_secret,
        )
    except AuthError as e:
        raise create_error_response(
            status_code=401,
            error="Unauthorized",
            code=ErrorCode.INVALID_SIGNATURE,
            detail=e.message,
            endpoint=request.url.path,
        )
    except WishlistError as e:
        raise error_from_exception(e, endpoint=request.url.path)

    if payload is None:
        raise create_error_response(
            status_code=400,
            error="Invalid JSON payload",
            code=ErrorCode.VALIDATION_ERROR,
            endpoint=request.url.path,
        )

    request.state.shop = proxy_request.shop
    return proxy_request


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


def _identity_from_token(token: str, shop: str, sessions: SessionManager, endpoint: str) -> Identity:
    session = sessions.validate_session(token, shop)
    if session is None:
        raise create_error_response(
            status_code=401,
            error="Invalid or expired token",
            code=ErrorCode.INVALID_TOKEN,
            endpoint=endpoint,
        )
    return session.identity


def get_proxy_context(
    request: Request,
    proxy: ProxyRequest = Depends(verify_proxy_request),
    sessions: SessionManager = Depends(get_session_manager),
    authorization: Annotated[str | None, Header()] = None,
    upstream_customer_id: Annotated[str | None, Header(alias=CUSTOMER_ID_HEADER)] = None,
    logged_in_customer_id: Annotated[str | None, Query()] = None,
) -> ProxyContext:
    """Resolve the caller, allowing requests without a session token.

    Without a bearer token the upstream-supplied customer id is used; with
    neither the caller is an anonymous guest.
    """
    token = _bearer_token(authorization)
    if token:
        identity = _identity_from_token(token, proxy.shop, sessions, request.url.path)
    elif upstream_customer_id or logged_in_customer_id:
        identity = resolve_identity((upstream_customer_id or logged_in_customer_id).strip())
    else:
        identity = Guest(key=None)

    request.state.identity = identity
    return ProxyContext(shop=proxy.shop, identity=identity, payload=proxy.payload, token=token)


def get_session_context(
    request: Request,
    proxy: ProxyRequest = Depends(verify_proxy_request),
    sessions: SessionManager = Depends(get_session_manager),
    authorization: Annotated[str | None, Header()] = None,
) -> ProxyContext:
    """Resolve the caller from a required bearer session token."""
    token = _bearer_token(authorization)
    if not token:
        raise create_error_response(
            status_code=401,
            error="Authentication required. Use Authorization: Bearer <token>.",
            code=ErrorCode.AUTH_REQUIRED,
            endpoint=request.url.path,
        )

    identity = _identity_from_token(token, proxy.shop, sessions, request.url.path)
    request.state.identity = identity
    return ProxyContext(shop=proxy.shop, identity=identity, payload=proxy.payload, token=token)
