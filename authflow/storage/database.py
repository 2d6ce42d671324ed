"""SQLite database for the persistent key/value store."""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from authflow.core.errors import AuthFlowError

DEFAULT_DB_DIR = Path.home() / ".authflow"
DEFAULT_DB_PATH = DEFAULT_DB_DIR / "store.db"

ENV_DB_PATH = "AUTHFLOW_DB_PATH"

MEMORY_URL = "sqlite://"


class DatabaseError(AuthFlowError):
    """Raised when the store database cannot be reached."""


def get_database_path() -> Path:
    """Get database path from environment or default."""
    db_path = os.environ.get(ENV_DB_PATH)
    if db_path:
        return Path(db_path)
    return DEFAULT_DB_PATH


def create_database_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine.

    Args:
        url: SQLAlchemy URL. Defaults to the SQLite file from
            :func:`get_database_path`; ``sqlite://`` gives a private
            in-memory database.
        echo: Whether to echo SQL statements.
    """
    if url is None:
        db_path = get_database_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{db_path}"

    if url == MEMORY_URL:
        # One shared connection, otherwise each checkout sees an empty database
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


class Database:
    """Lazily connected database manager."""

    def __init__(self, url: str | None = None, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @classmethod
    def from_path(cls, db_path: Path, echo: bool = False) -> Database:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(url=f"sqlite:///{db_path}", echo=echo)

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_database_engine(self._url, self._echo)
        return self._engine

    def get_session(self) -> Session:
        """Create a new database session."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory()

    def init_db(self) -> None:
        """Create all tables defined in the models."""
        from authflow.storage.models import Base

        Base.metadata.create_all(self.engine)

    def verify_connection(self) -> bool:
        """Verify the database can be queried.

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
        """Dispose of pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
