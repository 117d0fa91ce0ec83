"""
Database connection, session management, and store initialization.

SQLite is the only supported backend: the tracker is a single-user,
local-first tool. Store initialization failures are fatal; everything
after startup is handled by the record store's rollback policy.
"""
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.util import CommandError
from sqlalchemy import create_engine, event, inspect as sa_inspect
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger("tracker.database")

Base = declarative_base()

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


class StoreError(Exception):
    """A recoverable persistence failure (save/delete). The session was rolled back."""
    pass


class StoreInitializationError(StoreError):
    """The store could not be opened. The application cannot run without it."""
    pass


def _is_in_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_app_engine(database_url: str = None):
    """
    Create a SQLAlchemy engine for the tracker database.

    File databases: WAL mode, busy_timeout, check_same_thread=False
    In-memory databases: one shared connection (StaticPool) so every
    session sees the same tables.
    """
    url = database_url or settings.database_url

    kwargs = {"connect_args": {"check_same_thread": False}}
    if _is_in_memory(url):
        kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("Created SQLite engine for %s", url)
    return engine


engine = create_app_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _is_transient_error(exc: Exception) -> bool:
    """Check if an exception is a transient database error (locked, disk I/O)."""
    if isinstance(exc, IntegrityError):
        return False
    return isinstance(exc, (OperationalError, DBAPIError))


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    except Exception as exc:
        if _is_transient_error(exc):
            db.rollback()
            logger.warning("Rolled back session due to transient error: %s", exc)
        raise
    finally:
        db.close()


def init_db(bind=None):
    """
    Create all tables from model metadata.

    Used for fresh databases and in-memory test databases. Existing
    databases are upgraded with Alembic instead: `alembic upgrade head`
    """
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def setup_database(bind=None):
    """
    Open the store: create tables on a fresh database, migrate an existing one.

    Raises:
        StoreInitializationError: if the database cannot be opened or migrated.
    """
    bind = bind or engine
    try:
        existing = sa_inspect(bind).get_table_names()

        if not ALEMBIC_INI.exists():
            logger.warning("alembic.ini not found - creating tables directly from models")
            init_db(bind)
            return

        alembic_cfg = Config(str(ALEMBIC_INI))
        alembic_cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", bind.url.render_as_string(hide_password=False))
        alembic_cfg.attributes["configure_logger"] = False

        if "job_applications" not in existing:
            logger.info("Fresh database - creating all tables...")
            init_db(bind)
            command.stamp(alembic_cfg, "head")
            logger.info("Tables created and alembic stamped to head.")
        else:
            logger.info("Existing database - running migrations...")
            command.upgrade(alembic_cfg, "head")
            logger.info("Migrations complete.")
    except (SQLAlchemyError, CommandError) as exc:
        logger.critical("Unable to open the record store: %s", exc)
        raise StoreInitializationError(f"Unable to open the record store: {exc}") from exc
