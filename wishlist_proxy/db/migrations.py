"""Programmatic Alembic migration helpers."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

from wishlist_proxy.db.database import create_db_engine, get_database_url

ALEMBIC_DIR = Path(__file__).parent / "alembic"


def get_alembic_config(database_url: str | None = None) -> Config:
    """Alembic config pointing at the packaged migration scripts."""
    config = Config(str(Path(__file__).parent / "alembic.ini"))
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.attributes["configure_logger"] = False
    url = database_url or get_database_url()
    # ConfigParser interpolation treats % specially
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def run_migrations(database_url: str | None = None) -> None:
    """Upgrade the database to the latest revision."""
    command.upgrade(get_alembic_config(database_url), "head")


def downgrade_migrations(revision: str = "-1", database_url: str | None = None) -> None:
    """Downgrade to a revision, relative (-1) or absolute (base)."""
    command.downgrade(get_alembic_config(database_url), revision)


def get_current_revision(database_url: str | None = None) -> str | None:
    """Get the revision the database is currently at."""
    engine = create_db_engine(database_url)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()
