"""SQLite database integration for the cache."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

# Default database location
DEFAULT_DB_DIR = Path.home() / ".implicit_auth"
DEFAULT_DB_PATH = DEFAULT_DB_DIR / "cache.db"

# Environment variable names
ENV_DB_PATH = "IMPLICIT_AUTH_DB_PATH"


class DatabaseError(Exception):
    """Base exception for database errors."""


def get_database_path() -> Path:
    """Get database path from environment or default."""
    db_path = os.environ.get(ENV_DB_PATH)
    if db_path:
        return Path(db_path)
    return DEFAULT_DB_PATH


def create_database_engine(db_path: Path | None = None, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the cache database.

    Args:
        db_path: Path to the database file. Defaults to configured path.
        echo: Whether to echo SQL statements (for debugging).

    Returns:
        Configured SQLAlchemy Engine.
    """
    if db_path is None:
        db_path = get_database_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    return create_engine(f"sqlite:///{db_path}", echo=echo, pool_pre_ping=True)


class Database:
    """Database manager for the cache.

    Engine and session factory are created lazily on first use.
    """

    def __init__(self, db_path: Path | None = None, echo: bool = False) -> None:
        self._db_path = db_path or get_database_path()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self._echo = echo

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_database_engine(self._db_path, self._echo)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory

    def get_session(self) -> Session:
        """Create a new database session."""
        return self.session_factory()

    def init_db(self) -> None:
        """Create all tables defined in the models."""
        from implicit_auth.storage.models import Base

        Base.metadata.create_all(self.engine)
        logger.debug("Initialized cache database at %s", self._db_path)

    def verify_connection(self) -> bool:
        """Verify the database can be opened and queried.

        Raises:
            DatabaseError: If the connection fails.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return True
        except Exception as e:
            raise DatabaseError(f"Database connection failed: {e}") from e

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
