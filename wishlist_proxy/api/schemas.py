"""Pydantic schemas for API requests and responses.

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wishlist_proxy.db.models import MAX_PLATFORM_ID


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request models
class AddItemRequest(CamelModel):
    """Add item request body."""

    product_id: int = Field(..., gt=0, le=MAX_PLATFORM_ID)
    variant_id: int = Field(..., gt=0, le=MAX_PLATFORM_ID)
    handle: str = Field(..., min_length=1, max_length=255)

    @field_validator("handle", mode="before")
    @classmethod
    def strip_handle(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class MigrateRequest(CamelModel):
    """Guest wishlist migration request body."""

    guest_token: str | None = None


class GuestSessionRequest(CamelModel):
    """Guest session request body."""

    guest_id: str | None = Field(default=None, max_length=255)


class ExternalCustomerPayload(BaseModel):
    """Customer data relayed by the upstream platform."""

    id: int | str
    email: str | None = None


class CustomerSessionRequest(CamelModel):
    """Customer session request body."""

    customer: ExternalCustomerPayload


# Response models
class WishlistItemResponse(CamelModel):
    """A single wishlist item."""

    id: str
    product_id: str
    variant_id: str
    handle: str
    created_at: str | None = None


class WishlistPayload(CamelModel):
    """Wishlist with its items."""

    id: str
    share_uuid: str = Field(..., alias="shareUUID")
    items: list[WishlistItemResponse]


class WishlistResponse(CamelModel):
    """GET wishlist response."""

    success: bool = True
    wishlist: WishlistPayload
    token: str


class AddItemResponse(CamelModel):
    """Add item response."""

    success: bool = True
    item: WishlistItemResponse
    token: str


class MessageResponse(CamelModel):
    """Generic success response with a message."""

    success: bool = True
    message: str
    token: str


class MigrateResponse(CamelModel):
    """Guest wishlist migration response."""

    success: bool = True
    message: str
    migrated: bool
    migrated_count: int = Field(..., ge=0)
    token: str


class GuestInfo(CamelModel):
    """Guest identity returned by a guest session."""

    id: str
    is_guest: bool = True


class GuestSessionResponse(CamelModel):
    """Guest session response."""

    success: bool = True
    guest: GuestInfo
    token: str
    expires_in: int


class CustomerInfo(CamelModel):
    """Customer projection returned by a customer session."""

    id: str
    shop_customer_id: str
    email: str | None = None


class CustomerSessionResponse(CamelModel):
    """Customer session response."""

    success: bool = True
    customer: CustomerInfo
    token: str
    expires_in: int


class RefreshSessionResponse(CamelModel):
    """Refreshed session token response."""

    success: bool = True
    token: str
    expires_in: int
    customer_id: str | None = None
