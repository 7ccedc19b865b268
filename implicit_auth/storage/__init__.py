"""Storage module.

Provides the SQLite database backing the persistent cache.
"""

from implicit_auth.storage.database import (
    DEFAULT_DB_PATH,
    ENV_DB_PATH,
    Database,
    DatabaseError,
    create_database_engine,
    get_database_path,
)
from implicit_auth.storage.models import Base, CacheItem

__all__ = [
    "DEFAULT_DB_PATH",
    "ENV_DB_PATH",
    "Base",
    "CacheItem",
    "Database",
    "DatabaseError",
    "create_database_engine",
    "get_database_path",
]
