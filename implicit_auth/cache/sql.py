"""Cache storage backed by the SQLite cache database.

Entries survive process restarts, so the login URL and the response can be
handled by two separate runs of the hosting program.
"""

from __future__ import annotations

from sqlalchemy import delete, select

from implicit_auth.storage.database import Database
from implicit_auth.storage.models import CacheItem


class SQLCacheStorage:
    """Cache storage persisted through SQLAlchemy."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._db.init_db()

    def get_item(self, key: str) -> str | None:
        with self._db.get_session() as session:
            item = session.get(CacheItem, str(key))
            return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        with self._db.get_session() as session:
            session.merge(CacheItem(key=str(key), value=value))
            session.commit()

    def remove_item(self, key: str) -> None:
        with self._db.get_session() as session:
            session.execute(delete(CacheItem).where(CacheItem.key == str(key)))
            session.commit()

    def contains_key(self, key: str) -> bool:
        return self.get_item(key) is not None

    def get_keys(self) -> list[str]:
        with self._db.get_session() as session:
            return list(session.scalars(select(CacheItem.key)))

    def clear(self) -> None:
        with self._db.get_session() as session:
            session.execute(delete(CacheItem))
            session.commit()
