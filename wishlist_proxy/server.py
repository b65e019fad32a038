"""FastAPI server for the wishlist app proxy."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from wishlist_proxy import __version__
from wishlist_proxy.api import health, sessions, wishlist

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup/shutdown."""
    from wishlist_proxy.db.migrations import run_migrations

    logger.info("Running database migrations...")
    try:
        run_migrations()
        logger.info("Migrations complete")
    except Exception as e:
        logger.error("Migration failed: %s", e)

    for name in ("JWT_SECRET", "SHOPIFY_API_SECRET"):
        if not os.getenv(name):
            logger.warning("%s is not set; proxy requests will fail with a configuration error", name)

    logger.info(
        "Wishlist proxy serving %s under %s",
        os.getenv("APP_URL", "http://localhost:8000"),
        wishlist.PROXY_PATH_PREFIX,
    )

    yield


app = FastAPI(
    title="Wishlist Proxy",
    description="Storefront wishlist backend behind the Shopify app proxy",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(wishlist.router)


def main():
    """Run the server."""
    import uvicorn
    uvicorn.run(
        "wishlist_proxy.server:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
