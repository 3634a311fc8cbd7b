"""
Database connection and session management.
"""

import logging
import time
from typing import Any, Dict

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from taxfiler.core.config import settings
from taxfiler.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Build create_engine() keyword arguments for the given URL.

    PostgreSQL gets a small bounded pool and, in production, TLS.
    SQLite (local development and tests) keeps SQLAlchemy's default pool.
    """
    options: Dict[str, Any] = {
        "echo": settings.DEBUG,  # Log SQL queries in debug mode
        "pool_pre_ping": True,   # Verify connections before using
    }
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        return options

    options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=1800,
    )
    if settings.IS_PRODUCTION:
        options["connect_args"] = {"sslmode": "require"}
    return options


def enable_sqlite_foreign_keys(target_engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create database engine
engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))
if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def init_db(retries: int = None, delay: float = None) -> None:
    """
    Connect to the database and create missing tables.

    Runs once at startup, before the API accepts traffic. Retries the
    connection a few times so the service can start alongside its database.
    """
    # Import models so they're registered with Base.metadata
    from taxfiler.modules.accounts.models import User  # noqa: F401
    from taxfiler.modules.dependents.models import Dependent  # noqa: F401

    retries = settings.DB_CONNECT_RETRIES if retries is None else retries
    delay = settings.DB_RETRY_DELAY_SECONDS if delay is None else delay

    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Connecting to database (attempt {attempt}/{retries})")
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=engine)
            logger.info("Database connected and models synchronized")
            return
        except OperationalError as e:
            logger.error(f"Database connection attempt {attempt} failed: {e}")
            if attempt == retries:
                raise StorageUnavailable("Could not connect to the database") from e
            logger.info(f"Retrying in {delay:g} seconds ({retries - attempt} attempts remaining)")
            time.sleep(delay)


def get_db():
    """
    Dependency that provides a database session.
    Usage in FastAPI routes:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...

    Pool exhaustion and lost connections surface as StorageUnavailable.
    """
    db = SessionLocal()
    try:
        yield db
    except (PoolTimeoutError, OperationalError) as e:
        db.rollback()
        logger.error(f"Database unavailable: {e}")
        raise StorageUnavailable() from e
    finally:
        db.close()
