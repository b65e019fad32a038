"""Wishlist endpoints served behind the Shopify app proxy."""

import os

from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from wishlist_proxy.api.deps import ProxyContext, get_db, get_proxy_context, get_session_context, get_session_manager
from wishlist_proxy.api.errors import ErrorCode, create_error_response, error_from_exception
from wishlist_proxy.api.schemas import (
    AddItemRequest,
    AddItemResponse,
    MessageResponse,
    MigrateRequest,
    MigrateResponse,
    WishlistItemResponse,
    WishlistPayload,
    WishlistResponse,
)
from wishlist_proxy.auth.identity import subject_id_for
from wishlist_proxy.errors import WishlistError
from wishlist_proxy.services.merge import WishlistMergeEngine
from wishlist_proxy.services.sessions import SessionManager
from wishlist_proxy.services.wishlist import WishlistService

PROXY_PATH_PREFIX = os.getenv("PROXY_PATH_PREFIX", "/apps/wishlist").rstrip("/")

router = APIRouter(prefix=PROXY_PATH_PREFIX, tags=["wishlist"])


@router.get("", response_model=WishlistResponse)
async def get_wishlist(
    context: ProxyContext = Depends(get_proxy_context),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> WishlistResponse:
    """Get the caller's wishlist, creating an empty one on first fetch."""
    service = WishlistService(db, sessions)
    try:
        view = service.get_wishlist(context.shop, context.identity)
    except WishlistError as e:
        raise error_from_exception(e, endpoint="GET /wishlist", subject_id=subject_id_for(context.identity))

    return WishlistResponse(
        wishlist=WishlistPayload(
            id=view.id,
            share_uuid=view.share_uuid,
            items=[WishlistItemResponse.model_validate(item) for item in view.items],
        ),
        token=sessions.issue_token(context.shop, view.identity),
    )


@router.post("/items", response_model=AddItemResponse, status_code=201)
async def add_item(
    context: ProxyContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> AddItemResponse:
    """Add an item to the caller's wishlist."""
    subject_id = subject_id_for(context.identity)
    try:
        request = AddItemRequest.model_validate(context.payload)
    except PydanticValidationError as e:
        raise create_error_response(
            status_code=400,
            error="Missing required fields: productId, variantId, handle",
            code=ErrorCode.VALIDATION_ERROR,
            detail=str(e.errors()[0].get("msg")) if e.errors() else None,
            subject_id=subject_id,
            endpoint="POST /wishlist/items",
        )

    service = WishlistService(db, sessions)
    try:
        item, identity = service.add_item(
            context.shop,
            context.identity,
            request.product_id,
            request.variant_id,
            request.handle,
        )
    except WishlistError as e:
        raise error_from_exception(e, endpoint="POST /wishlist/items", subject_id=subject_id)

    return AddItemResponse(
        item=WishlistItemResponse.model_validate(item),
        token=sessions.issue_token(context.shop, identity),
    )


@router.delete("/items/{item_id}", response_model=MessageResponse)
async def remove_item(
    item_id: str,
    context: ProxyContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> MessageResponse:
    """Remove an item the caller owns."""
    service = WishlistService(db, sessions)
    try:
        service.remove_item(context.shop, context.identity, item_id)
    except WishlistError as e:
        raise error_from_exception(
            e,
            endpoint="DELETE /wishlist/items",
            subject_id=subject_id_for(context.identity),
        )

    return MessageResponse(
        message="Item removed from wishlist",
        token=sessions.issue_token(context.shop, context.identity),
    )


@router.post("/migrate", response_model=MigrateResponse)
async def migrate_wishlist(
    context: ProxyContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> MigrateResponse:
    """Fold a guest wishlist into the logged-in customer's wishlist."""
    subject_id = subject_id_for(context.identity)
    try:
        request = MigrateRequest.model_validate(context.payload)
    except PydanticValidationError:
        raise create_error_response(
            status_code=400,
            error="Guest token required",
            code=ErrorCode.VALIDATION_ERROR,
            subject_id=subject_id,
            endpoint="POST /wishlist/migrate",
        )

    engine = WishlistMergeEngine(db, sessions)
    try:
        result = engine.migrate(context.shop, context.identity, request.guest_token)
    except WishlistError as e:
        raise error_from_exception(e, endpoint="POST /wishlist/migrate", subject_id=subject_id)

    return MigrateResponse(
        message=result.message,
        migrated=result.migrated,
        migrated_count=result.migrated_count,
        token=result.token,
    )
