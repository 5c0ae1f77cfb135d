"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Manages the SQLAlchemy engine, the session factory and the
transaction boundary used by every write in the registry.

- Engine built from RegistryConfig
- One session per request
- unit_of_work(): commit on success, rollback on any error
- SQLite gets foreign key enforcement switched on

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import RegistryConfig
from storage.models import Base
from storage.repositories.exceptions import ConnectionError, TransactionError


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None
_config: Optional[RegistryConfig] = None


# =============================================================
# ENGINE
# =============================================================

def create_database_engine(config: RegistryConfig) -> Engine:
    """
    Create a SQLAlchemy engine for the configured database.

    SQLite in-memory URLs share one connection (StaticPool) so that
    every session sees the same database.
    """
    url = config.database_url
    logger.info(f"Creating database engine for: {url.split('@')[-1]}")

    if config.is_sqlite:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=config.echo_sql, future=True, **kwargs)

        @event.listens_for(engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            logger.debug("SQLite connection established, foreign keys enabled")
    else:
        engine = create_engine(
            url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo_sql,
            future=True,
        )

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def configure(config: RegistryConfig) -> Engine:
    """Build the process-wide engine and session factory."""
    global _engine, _SessionFactory, _config

    if _engine is not None:
        _engine.dispose()

    _config = config
    _engine = create_database_engine(config)
    _SessionFactory = create_session_factory(_engine)
    return _engine


def get_engine() -> Engine:
    """Get the database engine, configuring from the environment if necessary."""
    if _engine is None:
        configure(RegistryConfig.from_env())
    return _engine


def get_config() -> RegistryConfig:
    """Configuration the engine was built from."""
    if _config is None:
        get_engine()
    return _config


def get_session_factory() -> sessionmaker:
    if _SessionFactory is None:
        get_engine()
    return _SessionFactory


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for closing it.
    """
    return get_session_factory()()


def dispose_engine() -> None:
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# TRANSACTIONS
# =============================================================

@contextmanager
def unit_of_work(session: Session) -> Generator[Session, None, None]:
    """
    Transaction boundary around an injected session.

    Commits only if the block finishes; rolls back on ANY exception
    and re-raises it. A failing commit is rolled back and raised as
    TransactionError.

    Usage:
        with unit_of_work(session):
            repo.upsert(...)
    """
    try:
        yield session
    except Exception:
        session.rollback()
        logger.debug("Transaction rolled back")
        raise

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Commit failed, rolled back: {e}")
        raise TransactionError(
            repository_name="database",
            phase="commit",
            original_error=str(e),
        ) from e


# =============================================================
# INITIALIZATION
# =============================================================

def create_all_tables(engine: Optional[Engine] = None) -> None:
    """Create every registry table that does not exist yet."""
    engine = engine or get_engine()
    logger.info("Creating registry tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Registry tables ready")


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify database connection is working.

    Raises:
        ConnectionError: If the database cannot be reached
    """
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully")
        return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise ConnectionError(
            repository_name="database",
            operation="connect",
            original_error=str(e),
        ) from e


def initialize_database(config: RegistryConfig) -> Engine:
    """
    Startup sequence: build engine, verify connection, create tables.

    Aborts on any failure.
    """
    engine = configure(config)
    verify_database_connection(engine)
    create_all_tables(engine)
    return engine


__all__ = [
    "create_database_engine",
    "create_session_factory",
    "configure",
    "get_engine",
    "get_config",
    "get_session_factory",
    "get_session",
    "dispose_engine",
    "unit_of_work",
    "create_all_tables",
    "verify_database_connection",
    "initialize_database",
]
