"""Persistent key/value storage for AuthFlow."""

from authflow.storage.backends import (
    LOCAL_STORAGE,
    LocalStorageBackend,
    StorageBackend,
    create_storage_backend,
)
from authflow.storage.database import (
    DEFAULT_DB_PATH,
    ENV_DB_PATH,
    MEMORY_URL,
    Database,
    DatabaseError,
    create_database_engine,
    get_database_path,
)
from authflow.storage.models import Base, StoredValue

__all__ = [
    # Database management
    "DEFAULT_DB_PATH",
    "ENV_DB_PATH",
    "MEMORY_URL",
    "Database",
    "DatabaseError",
    "create_database_engine",
    "get_database_path",
    # Models
    "Base",
    "StoredValue",
    # Backends
    "LOCAL_STORAGE",
    "LocalStorageBackend",
    "StorageBackend",
    "create_storage_backend",
]
