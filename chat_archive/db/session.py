"""Database session management for the chat store and contacts database."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path

import sqlalchemy.engine
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from chat_archive.exceptions import (
    DatabaseConnectionError,
    DatabaseNotFoundError,
    SchemaVersionError,
)

log = logging.getLogger(__name__)

# Required tables for schema validation
REQUIRED_TABLES = frozenset(
    {
        "message",
        "handle",
        "chat",
        "chat_message_join",
        "chat_handle_join",
        "attachment",
        "message_attachment_join",
    }
)


def get_engine(db_path: Path, *, read_only: bool = True) -> sqlalchemy.engine.Engine:
    """Create SQLAlchemy engine for a SQLite database file.

    Args:
        db_path: Path to the database file.
        read_only: Open with ``mode=ro`` so the archive is never modified.

    Returns:
        SQLAlchemy engine that opens a fresh connection per checkout.

    Raises:
        DatabaseNotFoundError: If database file doesn't exist.
    """
    db_path = db_path.expanduser().resolve()

    if not db_path.exists():
        raise DatabaseNotFoundError(db_path)

    mode = "ro" if read_only else "rw"
    uri = f"{db_path.as_uri()}?mode={mode}"

    def _connect() -> sqlite3.Connection:
        return sqlite3.connect(uri, uri=True, timeout=30)

    # NullPool: connections are not kept open between calls
    return create_engine("sqlite://", creator=_connect, poolclass=NullPool)


def validate_schema(session: Session, required_tables: Iterable[str] = REQUIRED_TABLES) -> None:
    """Validate that the database has the expected tables.

    Args:
        session: Active database session.
        required_tables: Table names that must exist.

    Raises:
        SchemaVersionError: If required tables are missing.
    """
    result = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
    existing_tables = {row[0] for row in result}

    missing = set(required_tables) - existing_tables
    if missing:
        raise SchemaVersionError(
            f"Missing required tables: {', '.join(sorted(missing))}. "
            f"Is this a valid chat database?"
        )


@contextmanager
def get_session(
    db_path: Path, *, required_tables: Iterable[str] = REQUIRED_TABLES
) -> Generator[Session, None, None]:
    """Open a read-only session on a chat archive database.

    This is a context manager that handles session lifecycle:
    - Creates engine and session
    - Validates schema on first use
    - Rolls back and closes the session when done

    Args:
        db_path: Path to the SQLite file.
        required_tables: Tables checked by schema validation.

    Yields:
        SQLAlchemy Session bound to a fresh connection.

    Raises:
        DatabaseNotFoundError: If database file doesn't exist.
        SchemaVersionError: If database schema is incompatible.
        DatabaseConnectionError: If connection fails.

    Example:
        with get_session(Path("~/Library/Messages/chat.db")) as session:
            chats = session.query(Chat).all()
    """
    engine = get_engine(db_path)

    session_factory = sessionmaker(bind=engine)
    session = session_factory()

    try:
        try:
            validate_schema(session, required_tables)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"Failed to open {db_path}: {e}") from e
        log.debug("Opened database %s", db_path)
        yield session
    finally:
        session.rollback()
        session.close()
        engine.dispose()
