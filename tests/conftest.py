"""Shared fixtures for wishlist proxy tests."""

import os

# Set environment BEFORE any imports from wishlist_proxy
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["SHOPIFY_API_SECRET"] = "test-proxy-secret"
os.environ["DATABASE_URL"] = "sqlite:///./test_wishlist_proxy.db"
os.environ.pop("ENCRYPTION_KEY", None)
os.environ.pop("PROXY_PATH_PREFIX", None)

import pathlib
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wishlist_proxy.auth.jwt import TokenService
from wishlist_proxy.db.database import enable_sqlite_savepoints
from wishlist_proxy.db.models import Base
from wishlist_proxy.services.sessions import ExternalCustomer, SessionManager

SHOP = "test-store.myshopify.com"
OTHER_SHOP = "other-store.myshopify.com"
JWT_SECRET = os.environ["JWT_SECRET"]
PROXY_SECRET = os.environ["SHOPIFY_API_SECRET"]


class FakeClock:
    """Controllable clock for token issuance and expiry checks."""

    def __init__(self, now: float | None = None):
        self.now = int(now if now is not None else time.time())

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="session", autouse=True)
def cleanup_database_file():
    """Remove the file database the server lifespan migrates."""
    yield
    pathlib.Path("test_wishlist_proxy.db").unlink(missing_ok=True)


@pytest.fixture
def db_engine():
    """Create in-memory SQLite database for testing."""
    engine = enable_sqlite_savepoints(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    """Token service on a controllable clock."""
    return TokenService(JWT_SECRET, clock=clock)


@pytest.fixture
def sessions(db_session, tokens):
    return SessionManager(db_session, tokens)


@pytest.fixture
def customer_session(sessions):
    """A registered customer session for customer 1001 on the test shop."""
    return sessions.create_customer_session(SHOP, ExternalCustomer(id=1001, email="c1@example.com"))


@pytest.fixture
def guest_session(sessions):
    """A guest session with a known key on the test shop."""
    return sessions.create_guest_session(SHOP, "g1")
