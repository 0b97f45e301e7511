"""Database session management for the registry database."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

import sqlalchemy.engine
from sqlalchemy import create_engine, inspect as sa_inspect
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gopx.db.models import Base
from gopx.exceptions import DatabaseConnectionError, SchemaVersionError

log = logging.getLogger(__name__)

# Required tables for schema validation
REQUIRED_TABLES = frozenset(Base.metadata.tables)


def get_engine(database_url: str) -> sqlalchemy.engine.Engine:
    """Create SQLAlchemy engine for the registry database.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///registry.db``.

    Returns:
        SQLAlchemy engine.

    Raises:
        DatabaseConnectionError: If the URL is malformed or names an
            unknown driver.
    """
    try:
        url = make_url(database_url)
        connect_args: dict[str, object] = {}
        if url.get_backend_name() == "sqlite":
            # - timeout: wait up to 30s for locks
            # - check_same_thread: False for connection pooling
            connect_args = {"timeout": 30, "check_same_thread": False}
        return create_engine(url, connect_args=connect_args)
    except (ArgumentError, ImportError) as e:
        raise DatabaseConnectionError(f"Invalid database URL {database_url!r}: {e}") from e


def init_db(engine: sqlalchemy.engine.Engine) -> list[str]:
    """Create missing registry tables.

    Returns:
        Names of the tables that were created.
    """
    existing = set(sa_inspect(engine).get_table_names())
    Base.metadata.create_all(engine)
    created = sorted(REQUIRED_TABLES - existing)
    for table in created:
        log.info("Created table %s", table)
    return created


def validate_schema(session: Session) -> None:
    """Validate that the database has the registry tables.

    Args:
        session: Active database session.

    Raises:
        SchemaVersionError: If required tables are missing.
    """
    existing_tables = set(sa_inspect(session.get_bind()).get_table_names())

    missing = REQUIRED_TABLES - existing_tables
    if missing:
        raise SchemaVersionError(
            f"Missing required tables: {', '.join(sorted(missing))}. "
            f"Run 'gopx init-db' to create them."
        )


@contextmanager
def get_session(database_url: str) -> Generator[Session, None, None]:
    """Create a database session for registry operations.

    This is a context manager that handles session lifecycle:
    - Creates engine and session
    - Validates schema on first use
    - Commits on success, rolls back on error
    - Closes session when done

    Args:
        database_url: SQLAlchemy database URL.

    Yields:
        SQLAlchemy Session.

    Raises:
        DatabaseConnectionError: If connection fails.
        SchemaVersionError: If database schema is incompatible.

    Example:
        with get_session("sqlite:///registry.db") as session:
            packages = search_packages(session, PACKAGES.compile("websocket"))
    """
    engine = get_engine(database_url)
    session_factory = sessionmaker(bind=engine)
    session = session_factory()

    try:
        try:
            validate_schema(session)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"Failed to connect: {e}") from e
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        engine.dispose()
