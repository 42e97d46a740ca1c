"""Database connection manager and persistence gateway for the ticket store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ticketboard.config import DATABASE_URL_VARIABLES
from ticketboard.logging import sanitize_for_log
from ticketboard.store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from ticketboard.config import Settings

logger = logging.getLogger("ticketboard.store")

MEMORY_URL = "sqlite:///:memory:"


class Database:
    """Database connection manager.

    Wraps a SQLAlchemy engine for any supported URL. SQLite connections get
    foreign keys enabled (and WAL mode for file databases).
    """

    def __init__(self, url: str = MEMORY_URL) -> None:
        """Initialize database connection.

        Args:
            url: SQLAlchemy database URL. Use "sqlite:///:memory:" for an in-memory DB.
        """
        self.url = url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @classmethod
    def for_sqlite_path(cls, db_path: str | Path) -> Database:
        """Create a Database for a SQLite file path (or ":memory:")."""
        if str(db_path) == ":memory:":
            return cls(MEMORY_URL)
        return cls(f"sqlite:///{db_path}")

    @property
    def is_sqlite(self) -> bool:
        """Whether the URL targets SQLite."""
        return self.url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        """Whether the URL targets an in-memory SQLite database."""
        return self.url in (MEMORY_URL, "sqlite://")

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.is_memory:
                # Share the single connection across threads (TestClient runs handlers off-thread)
                self._engine = create_engine(
                    MEMORY_URL,
                    echo=False,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            elif self.is_sqlite:
                db_path = self.url.removeprefix("sqlite:///")
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
                self._engine = create_engine(
                    self.url,
                    echo=False,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(self.url, echo=False, pool_pre_ping=True)

            if self.is_sqlite:
                wal = not self.is_memory

                @event.listens_for(self._engine, "connect")
                def set_sqlite_pragma(dbapi_connection: object, _connection_record: object) -> None:
                    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
                    if wal:
                        cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()

        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            A new SQLAlchemy session.
        """
        return self.session_factory()

    def ping(self) -> bool:
        """Check that the database answers a trivial query.

        Returns:
            True if the round trip succeeded.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Database ping failed: %s", e)
            return False
        return True

    def close(self) -> None:
        """Close the database connection."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None


def connect_database(settings: Settings) -> Database | None:
    """Build the Database for the configured URL.

    Never raises on missing configuration: callers check for None and
    switch to fallback mode.

    Args:
        settings: Resolved settings.

    Returns:
        A Database, or None when no URL is configured or the engine cannot be built.
    """
    if settings.database_url is None:
        logger.warning(
            "No database URL found in environment; checked %s",
            ", ".join(DATABASE_URL_VARIABLES),
        )
        return None

    logger.info("Database URL found: %s", sanitize_for_log(settings.database_url))
    database = Database(settings.database_url)
    try:
        _ = database.engine
    except (SQLAlchemyError, ImportError, OSError) as e:
        logger.error("Failed to create database engine: %s", sanitize_for_log(str(e)))
        return None
    return database
