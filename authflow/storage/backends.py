"""Key/value storage backends for pending authorization state."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy import delete

from authflow.storage.database import Database
from authflow.storage.models import StoredValue

logger = logging.getLogger(__name__)

LOCAL_STORAGE = "LOCAL_STORAGE"


class StorageBackend(ABC):
    """Minimal string key/value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every key."""


class LocalStorageBackend(StorageBackend):
    """Store persisted in the local SQLite database."""

    def __init__(self, database: Database | None = None) -> None:
        self.database = database or Database()
        self.database.init_db()

    def get(self, key: str) -> str | None:
        with self.database.get_session() as session:
            row = session.get(StoredValue, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self.database.get_session() as session:
            session.merge(StoredValue(key=key, value=value))
            session.commit()

    def remove(self, key: str) -> None:
        with self.database.get_session() as session:
            session.execute(delete(StoredValue).where(StoredValue.key == key))
            session.commit()

    def clear(self) -> None:
        with self.database.get_session() as session:
            session.execute(delete(StoredValue))
            session.commit()


def create_storage_backend(user_store: str | None, database: Database | None = None) -> StorageBackend:
    """Create the backend named by a ``user_store`` setting.

    Only ``LOCAL_STORAGE`` is supported; any other selector logs a warning
    and falls back to the local store.
    """
    if user_store != LOCAL_STORAGE:
        logger.warning("Session storage is not currently supported on underlying platform.")
    return LocalStorageBackend(database)
