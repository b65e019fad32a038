"""Database connection management."""

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def get_database_url() -> str:
    """Get database URL from environment or use default SQLite."""
    return os.getenv("DATABASE_URL", "sqlite:///./wishlist_proxy.db")


def enable_sqlite_savepoints(db_engine: Engine) -> Engine:
    """Let SQLAlchemy own BEGIN on pysqlite so SAVEPOINTs nest inside the transaction.

    Without this the driver starts transactions lazily and a released
    SAVEPOINT commits on its own.
    """

    @event.listens_for(db_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return db_engine


def create_db_engine(database_url: str | None = None):
    """Create database engine with appropriate settings."""
    url = database_url or get_database_url()

    # SQLite-specific settings
    if url.startswith("sqlite"):
        return enable_sqlite_savepoints(create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=os.getenv("SQL_ECHO", "").lower() == "true",
        ))

    # PostgreSQL settings
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=os.getenv("SQL_ECHO", "").lower() == "true",
    )


# Default engine and session factory
engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions outside of FastAPI."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Generator[Session, None, None]:
    """Run a block as one transaction: commit on success, roll back on error.

    Repositories only flush; the unit of work owns the commit.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
