"""Health check endpoints."""

import logging

from fastapi import APIRouter

from wishlist_proxy.db.migrations import get_current_revision

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health() -> dict:
    """Health check endpoint."""
    try:
        revision = get_current_revision()
    except Exception as e:
        logger.warning("Could not read database revision: %s", e)
        revision = None

    return {
        "status": "ok",
        "db_revision": revision,
    }
