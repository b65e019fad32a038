"""Storefront session endpoints: guest and customer sessions, token refresh."""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from wishlist_proxy.api.deps import ProxyContext, get_session_context, get_session_manager, verify_proxy_request
from wishlist_proxy.api.errors import ErrorCode, create_error_response, error_from_exception
from wishlist_proxy.api.schemas import (
    CustomerInfo,
    CustomerSessionRequest,
    CustomerSessionResponse,
    GuestInfo,
    GuestSessionRequest,
    GuestSessionResponse,
    RefreshSessionResponse,
)
from wishlist_proxy.api.wishlist import PROXY_PATH_PREFIX
from wishlist_proxy.auth.proxy import ProxyRequest
from wishlist_proxy.errors import WishlistError
from wishlist_proxy.services.sessions import ExternalCustomer, SessionManager

router = APIRouter(prefix=f"{PROXY_PATH_PREFIX}/session", tags=["sessions"])


@router.post("/guest", response_model=GuestSessionResponse)
async def create_guest_session(
    proxy: ProxyRequest = Depends(verify_proxy_request),
    sessions: SessionManager = Depends(get_session_manager),
) -> GuestSessionResponse:
    """Start (or resume, when guestId is given) a guest session."""
    try:
        request = GuestSessionRequest.model_validate(proxy.payload)
    except PydanticValidationError:
        raise create_error_response(
            status_code=400,
            error="Invalid guest id",
            code=ErrorCode.VALIDATION_ERROR,
            endpoint="POST /session/guest",
        )

    try:
        session = sessions.create_guest_session(proxy.shop, request.guest_id)
    except WishlistError as e:
        raise error_from_exception(e, endpoint="POST /session/guest")

    return GuestSessionResponse(
        guest=GuestInfo(id=session.guest_id),
        token=session.token,
        expires_in=session.expires_in,
    )


@router.post("/customer", response_model=CustomerSessionResponse)
async def create_customer_session(
    proxy: ProxyRequest = Depends(verify_proxy_request),
    sessions: SessionManager = Depends(get_session_manager),
) -> CustomerSessionResponse:
    """Start a session for a logged-in customer relayed by the upstream platform."""
    try:
        request = CustomerSessionRequest.model_validate(proxy.payload)
        customer = ExternalCustomer.from_payload(request.customer.model_dump())
        session = sessions.create_customer_session(proxy.shop, customer)
    except PydanticValidationError:
        raise create_error_response(
            status_code=400,
            error="Customer id required",
            code=ErrorCode.VALIDATION_ERROR,
            endpoint="POST /session/customer",
        )
    except WishlistError as e:
        raise error_from_exception(e, endpoint="POST /session/customer")

    return CustomerSessionResponse(
        customer=CustomerInfo(
            id=session.customer_id,
            shop_customer_id=session.shop_customer_id,
            email=session.email,
        ),
        token=session.token,
        expires_in=session.expires_in,
    )


@router.post("/refresh", response_model=RefreshSessionResponse)
async def refresh_session(
    request: Request,
    context: ProxyContext = Depends(get_session_context),
    sessions: SessionManager = Depends(get_session_manager),
) -> RefreshSessionResponse:
    """Reissue the caller's token with a fresh expiry window."""
    refreshed = sessions.refresh_session(context.token, context.shop)
    if refreshed is None:
        raise create_error_response(
            status_code=401,
            error="Invalid or expired token",
            code=ErrorCode.INVALID_TOKEN,
            endpoint=request.url.path,
        )

    return RefreshSessionResponse(
        token=refreshed.token,
        expires_in=refreshed.expires_in,
        customer_id=refreshed.subject_id,
    )
